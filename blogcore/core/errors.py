import pydantic
from fastapi import status


class BlogError(Exception):
    """Base class for errors raised by the publishing core"""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BlogError):
    """Caller input is malformed or incomplete"""
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(BlogError):
    """A referenced entity does not exist"""
    status_code = status.HTTP_404_NOT_FOUND


class AuthorizationError(BlogError):
    """The caller's workspace does not own the target"""
    status_code = status.HTTP_403_FORBIDDEN


class ConflictError(BlogError):
    """A unique constraint kept failing after retrying"""
    status_code = status.HTTP_409_CONFLICT


class SlugExhaustedError(ConflictError):
    """No free slug was found within the probe limit"""


def validate_payload(schema, payload):
    """Coerce a mapping into ``schema``, reporting pydantic failures as ValidationError"""
    if payload is None:
        payload = {}
    if isinstance(payload, schema):
        return payload
    try:
        return schema.model_validate(payload)
    except pydantic.ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'payload'}: {error['msg']}"
            for error in exc.errors()
        )
        raise ValidationError(f"Invalid payload: {problems}") from exc
