"""Notebook and page models shared by the server and the client."""

from __future__ import annotations

import time
import uuid

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DEFAULT_TITLE = "Untitled Document"

# Metadata fields a PATCH may touch. Content never travels with the record.
UPDATABLE_FIELDS = frozenset({"title", "snippet", "is_favorite", "tags", "pages"})


def now_ms() -> int:
    """Milliseconds since the epoch."""
    return int(time.time() * 1000)


def generate_notebook_id() -> str:
    return str(uuid.uuid4())


def generate_page_id() -> str:
    """Generate a page ID: 'page_' + 12 hex chars from uuid4."""
    return "page_" + uuid.uuid4().hex[:12]


def page_content_key(owner_id: str, notebook_id: str, page_id: str) -> str:
    """Object-store key holding one page's HTML body."""
    return f"notes/{owner_id}/{notebook_id}/pages/{page_id}.html"


def page_title(position: int) -> str:
    return f"Page {position}"


class _WireModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Page(_WireModel):
    id: str = Field(default_factory=generate_page_id)
    title: str | None = None
    content_key: str = ""
    order: int = 0
    # Loaded lazily from the content store, never part of the metadata record.
    content: str | None = Field(default=None, exclude=True)


class Notebook(_WireModel):
    id: str = Field(default_factory=generate_notebook_id)
    owner_id: str = ""
    title: str = DEFAULT_TITLE
    snippet: str = ""
    is_favorite: bool = False
    tags: list[str] = Field(default_factory=list)
    pages: list[Page] = Field(default_factory=list)
    created_at: int = Field(default_factory=now_ms)
    last_edited_at: int = Field(default_factory=now_ms)

    def sorted_pages(self) -> list[Page]:
        return sorted(self.pages, key=lambda p: p.order)

    def get_page(self, page_id: str) -> Page | None:
        for page in self.pages:
            if page.id == page_id:
                return page
        return None

    def next_order(self) -> int:
        if not self.pages:
            return 0
        return max(p.order for p in self.pages) + 1

    def new_page(self) -> Page:
        """Build (but do not attach) the page that would follow the last one."""
        order = self.next_order()
        page = Page(order=order, title=page_title(order + 1))
        page.content_key = page_content_key(self.owner_id, self.id, page.id)
        return page


def dedupe_tags(tags: list[str]) -> list[str]:
    """Trim tags and drop empties and duplicates, keeping first occurrence."""
    seen: set[str] = set()
    out: list[str] = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.add(tag)
            out.append(tag)
    return out
