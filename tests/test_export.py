from datetime import datetime

from bvi_dashboard.export import CSV_HEADERS, posts_to_csv
from tests.factories import make_post


def test_header_only_when_no_posts():
    assert posts_to_csv([]) == "Post ID,Platform,Source,Text,Sentiment,Confidence,Topics,Likes,Shares,Comments,Date"
    assert len(CSV_HEADERS) == 11


def test_row_layout():
    post = make_post(
        "p1",
        topics=["tourism", "economy"],
        platform="facebook",
        source_id="bvi-gov",
        text="Ferry schedule",
        sentiment="positive",
        sentiment_confidence=0.91,
        likes=3,
        shares=2,
        comments=1,
        time=datetime(2024, 1, 15, 12, 30),
    )
    lines = posts_to_csv([post]).split("\n")
    assert lines[1] == 'p1,facebook,bvi-gov,"Ferry schedule",positive,0.91,tourism;economy,3,2,1,2024-01-15T12:30:00'


def test_text_quotes_are_doubled():
    csv_text = posts_to_csv([make_post("q", text='He said "hi"')])
    assert '"He said ""hi"""' in csv_text


def test_missing_values():
    post = make_post("n", text=None, sentiment=None, sentiment_confidence=None,
                     likes=None, shares=5, comments=None)
    row = posts_to_csv([post]).split("\n")[1]
    assert row == 'n,twitter,src-1,"",,,,0,5,0,2024-01-15T12:00:00'


def test_other_fields_with_commas_are_quoted():
    row = posts_to_csv([make_post("c", source_id="Smith, J.")]).split("\n")[1]
    assert row.startswith('c,twitter,"Smith, J.",')


def test_rows_joined_without_trailing_newline():
    csv_text = posts_to_csv([make_post("a"), make_post("b")])
    assert csv_text.count("\n") == 2
    assert not csv_text.endswith("\n")
