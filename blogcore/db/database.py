from contextlib import contextmanager
from functools import lru_cache
from typing import Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker, declarative_base

from blogcore.core.config import get_settings

# 数据库配置
SQLITE_DEV_DB = "sqlite:///./dev.db"
SQLITE_TEST_DB = "sqlite:///./test.db"
SQLITE_PROD_DB = "sqlite:///./prod.db"

Base = declarative_base()

_TX_DEPTH_KEY = "blogcore.tx_depth"


def build_engine(database_url: str):
    """根据 URL 创建数据库引擎"""
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    return create_engine(database_url, connect_args=connect_args)


@lru_cache()
def get_engine():
    """获取数据库引擎"""
    settings = get_settings()
    if settings.app_env == "test":
        database_url = SQLITE_TEST_DB
    elif settings.app_env == "production":
        database_url = settings.database_url or SQLITE_PROD_DB
    else:  # development
        database_url = settings.database_url or SQLITE_DEV_DB
    return build_engine(database_url)


def get_session_maker():
    """获取会话工厂"""
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine())


def get_session():
    """获取数据库会话"""
    SessionLocal = get_session_maker()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def create_tables(db_engine: Optional[object] = None):
    """创建所有表

    Args:
        db_engine: 可选的数据库引擎，如果不提供则使用默认引擎
    """
    # register every mapped class on Base.metadata
    from blogcore.models import media, metric, post, post_tag, taxonomy, user, workspace  # noqa: F401

    engine = db_engine or get_engine()
    Base.metadata.create_all(bind=engine)


def is_outermost(session: Session) -> bool:
    """True when no transaction() scope is open on the session"""
    return session.info.get(_TX_DEPTH_KEY, 0) == 0


@contextmanager
def transaction(session: Session) -> Iterator[Session]:
    """事务作用域

    The outermost scope commits on success and rolls back on any exception.
    Nested scopes join the outer one; their exceptions propagate so the
    outermost scope undoes every write.
    """
    depth = session.info.get(_TX_DEPTH_KEY, 0)
    session.info[_TX_DEPTH_KEY] = depth + 1
    try:
        yield session
        if depth == 0:
            session.commit()
    except Exception:
        if depth == 0:
            session.rollback()
        raise
    finally:
        session.info[_TX_DEPTH_KEY] = depth
