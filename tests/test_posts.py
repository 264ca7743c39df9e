from datetime import datetime

import pytest
from sqlalchemy import func, select
from blogcore.core.errors import ConflictError, NotFoundError, ValidationError
from blogcore.models.media import Media, PostMedia
from blogcore.models.metric import PostMetric
from blogcore.models.post import Post, PostStatus
from blogcore.models.post_tag import PostTag
from blogcore.models.taxonomy import Category, Tag
from blogcore.services import posts, taxonomy
from blogcore.services.posts import (
    create_post,
    delete_post,
    get_post_for_edit,
    normalise_status,
    parse_timestamp,
    update_post,
)


def count(session, model):
    return session.execute(select(func.count()).select_from(model)).scalar_one()


@pytest.fixture
def hello_payload():
    return {
        "title": "Hello",
        "content": "World",
        "status": "published",
        "tags": ["Design", "React"],
        "category": "Growth",
    }


class TestHelloWorld:
    def test_create(self, session, author, hello_payload):
        """新建文章时创建分类和标签"""
        before = posts.utcnow()
        post = create_post(session, hello_payload, actor_id=author.id)
        assert post.slug == "hello"
        assert post.status == PostStatus.PUBLISHED
        assert post.published_at is not None and post.published_at >= before.replace(microsecond=0)
        assert post.category.slug == "growth"
        assert [tag.slug for tag in post.tags] == ["design", "react"]
        assert post.author.name == "Ada Writer"
        assert post.metrics is not None and post.metrics.total_views == 0
        assert post.workspace_id is None
        assert count(session, Category) == 1
        assert count(session, Tag) == 2

    def test_resubmission_keeps_slug(self, session, author, hello_payload):
        """重复提交不改变 slug 也不重复创建分类/标签"""
        created = create_post(session, hello_payload, actor_id=author.id)
        updated = update_post(session, created.id, hello_payload, actor_id=author.id)
        assert updated.id == created.id
        assert updated.slug == "hello"
        assert updated.published_at == created.published_at
        assert count(session, Post) == 1
        assert count(session, Category) == 1
        assert count(session, Tag) == 2
        assert count(session, PostTag) == 2

    def test_same_title_gets_suffix(self, session, author, hello_payload):
        first = create_post(session, hello_payload, actor_id=author.id)
        second = create_post(session, hello_payload, actor_id=author.id)
        third = create_post(session, {**hello_payload, "slug": "Hello"}, actor_id=author.id)
        assert [first.slug, second.slug, third.slug] == ["hello", "hello-2", "hello-3"]

    def test_same_slug_in_other_workspace(self, session, author, make_workspace, hello_payload):
        agency = make_workspace("Agency")
        global_post = create_post(session, hello_payload, actor_id=author.id)
        scoped_post = create_post(session, hello_payload, actor_id=author.id, workspace_id=agency.id)
        assert global_post.slug == scoped_post.slug == "hello"
        assert scoped_post.workspace.slug == "agency"
        # the string reference falls back to the global category
        assert scoped_post.category.id == global_post.category.id


class TestValidation:
    def test_title_and_content_required(self, session):
        with pytest.raises(ValidationError) as exc:
            create_post(session, {"title": "Only a title"})
        assert exc.value.message == "Blog posts require a title and content."
        with pytest.raises(ValidationError):
            create_post(session, None)

    def test_unknown_status(self, session):
        with pytest.raises(ValidationError) as exc:
            create_post(session, {"title": "T", "content": "C", "status": "deleted"})
        assert exc.value.message == "Unsupported blog status."

    def test_malformed_payload(self, session):
        with pytest.raises(ValidationError):
            create_post(session, {"title": "T", "content": "C", "reading_time_minutes": "many"})

    def test_normalise_status(self):
        assert normalise_status(None) == PostStatus.DRAFT
        assert normalise_status("  ", PostStatus.PUBLISHED) == PostStatus.PUBLISHED
        assert normalise_status("Scheduled") == PostStatus.SCHEDULED
        assert normalise_status(PostStatus.ARCHIVED) == PostStatus.ARCHIVED

    def test_defaults(self, session):
        post = create_post(session, {"title": "Draft", "content": "Body"})
        assert post.status == PostStatus.DRAFT
        assert post.published_at is None
        assert post.reading_time_minutes == 5
        assert post.featured is False
        assert post.author is None
        assert post.category is None
        assert post.tags == []
        assert post.media == []

    def test_missing_post(self, session):
        with pytest.raises(NotFoundError):
            update_post(session, 999, {"title": "T", "content": "C"})
        with pytest.raises(ValidationError):
            get_post_for_edit(session, "abc")


class TestPublishedAt:
    def test_parse_timestamp(self):
        assert parse_timestamp(None) is None
        assert parse_timestamp("2024-01-02T03:04:05+02:00") == datetime(2024, 1, 2, 1, 4, 5)
        assert parse_timestamp("2024-01-02T03:04:05") == datetime(2024, 1, 2, 3, 4, 5)
        with pytest.raises(ValidationError):
            parse_timestamp("yesterday")

    def test_explicit_value_wins(self, session):
        post = create_post(
            session,
            {"title": "T", "content": "C", "status": "scheduled", "published_at": "2030-05-01T09:00:00Z"},
        )
        assert post.status == PostStatus.SCHEDULED
        assert post.published_at == datetime(2030, 5, 1, 9, 0, 0)

    def test_invalid_value(self, session):
        with pytest.raises(ValidationError) as exc:
            create_post(session, {"title": "T", "content": "C", "published_at": "soon"})
        assert exc.value.message == "Invalid publication timestamp."

    def test_kept_across_updates(self, session):
        post = create_post(session, {"title": "T", "content": "C", "status": "published"})
        archived = update_post(session, post.id, {"title": "T", "content": "C", "status": "archived"})
        republished = update_post(session, post.id, {"title": "T", "content": "C", "status": "published"})
        assert archived.published_at == post.published_at
        assert republished.published_at == post.published_at

    def test_status_kept_when_omitted(self, session):
        post = create_post(session, {"title": "T", "content": "C", "status": "published"})
        updated = update_post(session, post.id, {"title": "T2", "content": "C"})
        assert updated.status == PostStatus.PUBLISHED


class TestAtomicity:
    def test_media_failure_rolls_back_taxonomy(self, session, author):
        """媒体校验失败时不留下新建的分类和标签"""
        with pytest.raises(ValidationError):
            create_post(
                session,
                {
                    "title": "Broken",
                    "content": "Body",
                    "category": "Growth",
                    "tags": ["Design", {"name": "React"}],
                    "media": [{"alt_text": "missing url"}],
                },
                actor_id=author.id,
            )
        assert count(session, Category) == 0
        assert count(session, Tag) == 0
        assert count(session, Post) == 0

    def test_missing_tag_id_rolls_back(self, session):
        with pytest.raises(NotFoundError):
            create_post(session, {"title": "T", "content": "C", "category": "Growth", "tags": [404]})
        assert count(session, Category) == 0


class TestTagsAndGallery:
    def test_empty_tag_list_clears_tags(self, session):
        post = create_post(session, {"title": "T", "content": "C", "tags": ["Design"]})
        updated = update_post(session, post.id, {"title": "T", "content": "C", "tags": []})
        assert updated.tags == []
        assert count(session, PostTag) == 0
        assert count(session, Tag) == 1

    def test_omitted_tags_clear_tags(self, session):
        post = create_post(session, {"title": "T", "content": "C", "tags": ["Design"]})
        updated = update_post(session, post.id, {"title": "T", "content": "C"})
        assert updated.tags == []

    def test_duplicate_tag_references_link_once(self, session):
        post = create_post(session, {"title": "T", "content": "C", "tags": ["Design", "design", "DESIGN"]})
        assert [tag.slug for tag in post.tags] == ["design"]

    def test_gallery_order_and_captions(self, session):
        media = Media(url="https://cdn.example.com/shared.png", caption="Stored caption")
        session.add(media)
        session.commit()
        post = create_post(
            session,
            {
                "title": "T",
                "content": "C",
                "media": [
                    "https://cdn.example.com/one.png",
                    {"id": media.id, "role": "hero"},
                    {"url": "https://cdn.example.com/three.png", "caption": "Three"},
                ],
            },
        )
        assert [item.position for item in post.media] == [0, 1, 2]
        assert post.media[0].url == "https://cdn.example.com/one.png"
        assert (post.media[1].id, post.media[1].role, post.media[1].caption) == (media.id, "hero", "Stored caption")
        assert post.media[2].caption == "Three"

    def test_empty_media_list_keeps_gallery(self, session):
        post = create_post(session, {"title": "T", "content": "C", "media": ["https://cdn.example.com/a.png"]})
        kept = update_post(session, post.id, {"title": "T", "content": "C", "media": []})
        assert [item.url for item in kept.media] == ["https://cdn.example.com/a.png"]
        replaced = update_post(
            session, post.id, {"title": "T", "content": "C", "media": ["https://cdn.example.com/b.png"]}
        )
        assert [item.url for item in replaced.media] == ["https://cdn.example.com/b.png"]
        assert count(session, PostMedia) == 1
        # replaced media rows are not deleted
        assert count(session, Media) == 2

    def test_duplicate_positions(self, session):
        with pytest.raises(ValidationError):
            create_post(
                session,
                {
                    "title": "T",
                    "content": "C",
                    "media": [
                        {"url": "https://cdn.example.com/a.png", "position": 1},
                        {"url": "https://cdn.example.com/b.png", "position": 1},
                    ],
                },
            )
        assert count(session, Media) == 0

    def test_cover_image(self, session):
        post = create_post(session, {"title": "T", "content": "C", "cover_image": "https://cdn.example.com/cover.png"})
        assert post.cover_image.url == "https://cdn.example.com/cover.png"
        assert post.cover_image_id == post.cover_image.id
        kept = update_post(session, post.id, {"title": "T", "content": "C"})
        assert kept.cover_image_id == post.cover_image_id
        with pytest.raises(NotFoundError):
            update_post(session, post.id, {"title": "T", "content": "C", "cover_image_id": 404})


class TestWorkspaces:
    def test_update_keeps_post_workspace(self, session, make_workspace):
        agency = make_workspace("Agency")
        post = create_post(session, {"title": "T", "content": "C", "category": "Local"}, workspace_id=agency.id)
        updated = update_post(session, post.id, {"title": "T", "content": "C", "tags": ["Scoped"]})
        assert updated.workspace_id == agency.id
        assert updated.tags[0].workspace_id == agency.id
        assert updated.category.slug == "local"

    def test_foreign_category_id_is_rejected(self, session, make_workspace):
        agency, other = make_workspace("Agency"), make_workspace("Other")
        category = Category(name="Private", slug="private", workspace_id=other.id)
        session.add(category)
        session.commit()
        with pytest.raises(ValidationError):
            create_post(session, {"title": "T", "content": "C", "category_id": category.id}, workspace_id=agency.id)
        assert count(session, Post) == 0


class TestRetry:
    def test_collision_is_retried_once(self, session, monkeypatch):
        create_post(session, {"title": "Hello", "content": "World"})
        real_allocate = posts.allocate_slug
        calls = []

        def stale_allocate(session, model, raw_text, workspace_id, exclude_id=None, fallback="blog-post"):
            calls.append(raw_text)
            if len(calls) == 1:
                # another writer took the slug after the lookup
                return "hello"
            return real_allocate(session, model, raw_text, workspace_id, exclude_id=exclude_id, fallback=fallback)

        monkeypatch.setattr(posts, "allocate_slug", stale_allocate)
        post = create_post(session, {"title": "Hello", "content": "Again", "tags": ["Design"]})
        assert post.slug == "hello-2"
        assert len(calls) == 2
        assert count(session, Post) == 2
        assert count(session, Tag) == 1

    def test_concurrent_category_create_reuses_row(self, session, monkeypatch):
        """另一个写入者先创建了同名分类时，重试后复用该分类"""
        existing = Category(name="Growth", slug="growth")
        session.add(existing)
        session.commit()
        real_find = taxonomy._find_in_scope
        calls = []

        def stale_find(session, model, slug, workspace_id):
            calls.append(slug)
            if len(calls) == 1:
                # the lookup ran before the other writer committed
                return None
            return real_find(session, model, slug, workspace_id)

        monkeypatch.setattr(taxonomy, "_find_in_scope", stale_find)
        post = create_post(session, {"title": "Hello", "content": "World", "category": "Growth"})
        assert post.category.id == existing.id
        assert post.category.slug == "growth"
        assert count(session, Category) == 1
        assert count(session, Post) == 1

    def test_second_collision_raises_conflict(self, session, monkeypatch):
        create_post(session, {"title": "Hello", "content": "World"})
        monkeypatch.setattr(posts, "allocate_slug", lambda *args, **kwargs: "hello")
        with pytest.raises(ConflictError):
            create_post(session, {"title": "Hello", "content": "Again", "category": "Growth"})
        assert count(session, Post) == 1
        assert count(session, Category) == 0


class TestDelete:
    def test_delete_cascades(self, session):
        post = create_post(
            session,
            {"title": "T", "content": "C", "tags": ["Design"], "media": ["https://cdn.example.com/a.png"]},
        )
        delete_post(session, post.id)
        assert count(session, Post) == 0
        assert count(session, PostTag) == 0
        assert count(session, PostMedia) == 0
        assert count(session, PostMetric) == 0
        assert count(session, Tag) == 1
        assert count(session, Media) == 1

    def test_delete_missing(self, session):
        with pytest.raises(NotFoundError):
            delete_post(session, 12)
