"""Tests for snippet and heading extraction."""

from folio.notebook.html import extract_headings, html_to_text, make_snippet


def test_html_to_text_strips_markup() -> None:
    assert html_to_text("<p>Hello <b>world</b></p>") == "Hello world"


def test_html_to_text_collapses_whitespace() -> None:
    assert html_to_text("<p>a</p>\n\n<p>  b  </p>") == "a b"


def test_html_to_text_drops_scripts() -> None:
    assert html_to_text("<p>ok</p><script>alert(1)</script>") == "ok"


def test_html_to_text_empty() -> None:
    assert html_to_text("") == ""


def test_snippet_truncates_to_100_chars() -> None:
    html = "<p>" + "x" * 250 + "</p>"
    assert make_snippet(html) == "x" * 100


def test_snippet_short_text_unchanged() -> None:
    assert make_snippet("<h1>Title</h1><p>body</p>") == "Title body"


def test_extract_headings() -> None:
    html = "<h1>Intro</h1><p>text</p><h2>Details <em>here</em></h2><h3>   </h3>"
    headings = extract_headings(html)
    assert [(h.level, h.text) for h in headings] == [(1, "Intro"), (2, "Details here")]


def test_extract_headings_none() -> None:
    assert extract_headings("<p>no headings</p>") == []
    assert extract_headings("") == []
