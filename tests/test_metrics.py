import pytest
from blogcore.core.errors import NotFoundError, ValidationError
from blogcore.services.metrics import TRENDING_LIMIT, get_metrics_overview, get_post_metrics, update_post_metrics
from blogcore.services.posts import create_post


def make_post(session, title, status="published", **counters):
    post = create_post(session, {"title": title, "content": f"{title} body", "status": status})
    if counters:
        update_post_metrics(session, post.id, counters)
    return post


class TestPostMetrics:
    def test_created_with_post(self, session):
        post = make_post(session, "Fresh")
        response = get_post_metrics(session, post.id)
        assert response.post.id == post.id
        assert response.metrics.total_views == 0

    def test_update_clamps_values(self, session):
        post = make_post(session, "Clamped")
        response = update_post_metrics(
            session,
            post.id,
            {"total_views": -3, "like_count": "12", "bounce_rate": 180, "read_completion_rate": -1},
        )
        assert response.metrics.total_views == 0
        assert response.metrics.like_count == 12
        assert response.metrics.bounce_rate == 100
        assert response.metrics.read_completion_rate == 0

    def test_update_rejects_bad_values(self, session):
        post = make_post(session, "Broken")
        with pytest.raises(ValidationError):
            update_post_metrics(session, post.id, {"share_count": "many"})
        with pytest.raises(ValidationError):
            update_post_metrics(session, post.id, {"last_synced_at": "last week"})

    def test_missing_post(self, session):
        with pytest.raises(NotFoundError):
            get_post_metrics(session, 404)


class TestMetricsOverview:
    def test_empty(self, session):
        overview = get_metrics_overview(session)
        assert overview.totals.posts_tracked == 0
        assert overview.engagement.read_completion_rate == 0
        assert overview.freshness.last_synced_at is None
        assert overview.trending_posts == []
        assert overview.by_status == {}

    def test_totals_and_averages(self, session):
        """汇总所有文章的统计"""
        make_post(session, "First", total_views=10, like_count=2, average_read_time_seconds=30,
                  read_completion_rate=50, click_through_rate=10, bounce_rate=20)
        make_post(session, "Second", status="draft", total_views=5, like_count=1, average_read_time_seconds=50,
                  read_completion_rate=100, click_through_rate=20, bounce_rate=40)
        overview = get_metrics_overview(session)
        assert overview.totals.posts_tracked == 2
        assert overview.totals.total_views == 15
        assert overview.totals.like_count == 3
        assert overview.engagement.average_read_time_seconds == 40
        assert overview.engagement.read_completion_rate == 75
        assert overview.engagement.click_through_rate == 15
        assert overview.engagement.bounce_rate == 30
        assert overview.by_status == {"published": 1, "draft": 1}
        assert overview.freshness.published_count == 1
        assert overview.freshness.draft_count == 1
        assert overview.freshness.scheduled_count == 0
        assert overview.freshness.posts_updated_this_week == 2
        assert overview.freshness.last_synced_at is not None
        assert {snapshot.post.title for snapshot in overview.posts} == {"First", "Second"}

    def test_trending_order(self, session):
        """热门文章按浏览量倒序，最多六篇"""
        views = [40, 5, 90, 0, 70, 10, 60, 20]
        for index, total_views in enumerate(views):
            make_post(session, f"Post {index}", total_views=total_views)
        overview = get_metrics_overview(session)
        assert len(overview.trending_posts) == TRENDING_LIMIT
        assert [post.views for post in overview.trending_posts] == [90, 70, 60, 40, 20, 10]
        assert overview.trending_posts[0].title == "Post 2"
        assert overview.trending_posts[0].slug == "post-2"
        assert overview.totals.posts_tracked == len(views)

    def test_explicit_sync_time(self, session):
        make_post(session, "Synced", last_synced_at="2099-01-01T00:00:00Z")
        overview = get_metrics_overview(session)
        assert overview.freshness.last_synced_at.year == 2099

    def test_date_window(self, session):
        make_post(session, "Windowed", total_views=3)
        past = get_metrics_overview(session, end_date="2000-01-01T00:00:00")
        assert past.totals.posts_tracked == 0
        assert past.time_range.end.year == 2000
        current = get_metrics_overview(session, start_date="2000-01-01T00:00:00")
        assert current.totals.total_views == 3
        assert current.time_range.start.year == 2000

    def test_invalid_date_window(self, session):
        with pytest.raises(ValidationError) as exc:
            get_metrics_overview(session, start_date="recently")
        assert exc.value.message == "Invalid date range provided."
