"""Plain-text helpers over page HTML."""

from __future__ import annotations

import re

from bs4 import BeautifulSoup
from pydantic import BaseModel

SNIPPET_LENGTH = 100

_WHITESPACE = re.compile(r"\s+")
_HEADINGS = ["h1", "h2", "h3", "h4", "h5", "h6"]


class Heading(BaseModel):
    level: int
    text: str


def html_to_text(html: str) -> str:
    """Strip markup and collapse whitespace."""
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style"]):
        tag.decompose()
    return _WHITESPACE.sub(" ", soup.get_text(" ")).strip()


def make_snippet(html: str, length: int = SNIPPET_LENGTH) -> str:
    """Preview text for a page: markup stripped, cut to `length` characters."""
    return html_to_text(html)[:length]


def extract_headings(html: str) -> list[Heading]:
    """List non-empty headings in document order."""
    if not html:
        return []
    soup = BeautifulSoup(html, "html.parser")
    headings: list[Heading] = []
    for tag in soup.find_all(_HEADINGS):
        text = _WHITESPACE.sub(" ", tag.get_text(" ")).strip()
        if text:
            headings.append(Heading(level=int(tag.name[1]), text=text))
    return headings
