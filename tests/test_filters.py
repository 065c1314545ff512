from datetime import datetime

from bvi_dashboard.db_models import Post
from bvi_dashboard.filters import build_post_filter
from bvi_dashboard.params import DateRange, PostFilter
from tests.factories import make_post


def _ids(session, f: PostFilter) -> list[str]:
    rows = session.query(Post).filter(*build_post_filter(f)).order_by(Post.id).all()
    return [p.post_id for p in rows]


def test_empty_filter_matches_everything(session, add_posts):
    add_posts(make_post("a"), make_post("b"))
    assert build_post_filter(PostFilter()) == []
    assert _ids(session, PostFilter()) == ["a", "b"]


def test_keyword_matches_either_field_case_insensitively_once(session, add_posts):
    add_posts(
        make_post("text-only", text="Hurricane season ahead", combined_text="nothing"),
        make_post("combined-only", text="nothing", combined_text="HURRICANE watch"),
        make_post("both", text="hurricane", combined_text="hurricane hurricane"),
        make_post("neither", text="sunny", combined_text="sunny"),
    )
    assert _ids(session, PostFilter(keyword="hurricane")) == ["text-only", "combined-only", "both"]


def test_keyword_wildcards_match_literally(session, add_posts):
    add_posts(
        make_post("pct", text="up 50% today"),
        make_post("plain", text="up 500 today"),
    )
    assert _ids(session, PostFilter(keyword="50%")) == ["pct"]


def test_start_date_only_applies_lower_bound(session, add_posts):
    add_posts(
        make_post("old", time=datetime(2023, 12, 31, 23, 59)),
        make_post("edge", time=datetime(2024, 1, 1)),
        make_post("new", time=datetime(2030, 1, 1)),
    )
    f = PostFilter(date_range=DateRange(start=datetime(2024, 1, 1)))
    assert _ids(session, f) == ["edge", "new"]


def test_end_date_only_applies_upper_bound(session, add_posts):
    add_posts(
        make_post("ancient", time=datetime(1999, 1, 1)),
        make_post("edge", time=datetime(2024, 1, 1)),
        make_post("after", time=datetime(2024, 1, 1, 0, 0, 1)),
    )
    f = PostFilter(date_range=DateRange(end=datetime(2024, 1, 1)))
    assert _ids(session, f) == ["ancient", "edge"]


def test_topic_membership_anywhere_in_list(session, add_posts):
    add_posts(
        make_post("first", topics=["tourism", "economy"]),
        make_post("second", topics=["weather", "tourism"]),
        make_post("none", topics=[]),
    )
    assert _ids(session, PostFilter(topic="tourism")) == ["first", "second"]


def test_constraints_are_anded(session, add_posts):
    add_posts(
        make_post("hit", sentiment="positive", platform="facebook", source_id="gov"),
        make_post("wrong-platform", sentiment="positive", platform="twitter", source_id="gov"),
        make_post("wrong-sentiment", sentiment="negative", platform="facebook", source_id="gov"),
    )
    f = PostFilter(sentiment="positive", platform="facebook", source_id="gov")
    assert _ids(session, f) == ["hit"]
