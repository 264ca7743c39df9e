import pytest
from blogcore.core.errors import SlugExhaustedError
from blogcore.models.post import Post
from blogcore.models.taxonomy import Category
from blogcore.services.slugs import allocate_slug, slugify


class TestSlugify:
    @pytest.mark.parametrize("raw, expected", [
        ("Hello World", "hello-world"),
        ("  --Growth & Scale!!  ", "growth-scale"),
        ("Café à Paris", "cafe-a-paris"),
        ("React/Next.js 14", "react-next-js-14"),
    ])
    def test_normalises_text(self, raw, expected):
        assert slugify(raw) == expected

    def test_empty_text_uses_fallback_with_random_suffix(self):
        slug = slugify("!!!", "category")
        assert slug.startswith("category-")
        suffix = slug.split("-", 1)[1]
        assert len(suffix) == 6
        assert suffix.isalnum() and suffix == suffix.lower()

    def test_none_uses_default_fallback(self):
        assert slugify(None).startswith("blog-post-")


class TestAllocateSlug:
    def test_repeated_allocations_are_distinct(self, session):
        slugs = []
        for _ in range(5):
            slug = allocate_slug(session, Category, "Growth", None)
            session.add(Category(name="Growth", slug=slug))
            session.flush()
            slugs.append(slug)
        assert slugs == ["growth", "growth-2", "growth-3", "growth-4", "growth-5"]

    def test_scopes_do_not_collide(self, session, make_workspace):
        workspace = make_workspace("Agency")
        session.add(Category(name="Growth", slug="growth", workspace_id=None))
        session.flush()
        assert allocate_slug(session, Category, "Growth", workspace.id) == "growth"
        assert allocate_slug(session, Category, "Growth", None) == "growth-2"

    def test_exclude_id_keeps_own_slug(self, session):
        post = Post(title="Hello", slug="hello", content="World")
        session.add(post)
        session.flush()
        assert allocate_slug(session, Post, "Hello", None, exclude_id=post.id) == "hello"
        assert allocate_slug(session, Post, "Hello", None) == "hello-2"

    def test_probe_limit_fails_closed(self, session, monkeypatch):
        from blogcore.core import config

        session.add_all([
            Category(name="Growth", slug="growth"),
            Category(name="Growth", slug="growth-2"),
        ])
        session.flush()
        settings = config.get_settings()
        monkeypatch.setattr(
            "blogcore.services.slugs.get_settings",
            lambda: type(settings)(**{**settings.__dict__, "slug_probe_limit": 2}),
        )
        with pytest.raises(SlugExhaustedError):
            allocate_slug(session, Category, "Growth", None)
