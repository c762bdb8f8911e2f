"""Page cursor: ordered page list plus the active page of one notebook."""

from __future__ import annotations

import logging

from folio.client.state import NotebookState
from folio.editor.session import EditorSession
from folio.errors import NotFoundError
from folio.notebook.notebook import Page

logger = logging.getLogger("folio.pagination")


class PageCursor:
    """Navigates pages by their explicit `order`, never by list position.

    The page list is always re-read from the state container; the cursor only
    owns the active page id. When a session is attached, every move opens the
    new page in it.
    """

    def __init__(self, state: NotebookState, notebook_id: str, session: EditorSession | None = None) -> None:
        self._state = state
        self.notebook_id = notebook_id
        self._session = session
        self.active_id: str | None = None

    @property
    def pages(self) -> list[Page]:
        nb = self._state.find(self.notebook_id)
        return nb.sorted_pages() if nb is not None else []

    @property
    def index(self) -> int:
        """0-based index of the active page, -1 when none is active."""
        for i, page in enumerate(self.pages):
            if page.id == self.active_id:
                return i
        return -1

    @property
    def position(self) -> int:
        return self.index + 1

    @property
    def label(self) -> str:
        return f"Page {self.position} of {len(self.pages)}"

    @property
    def active(self) -> Page | None:
        index = self.index
        return self.pages[index] if index >= 0 else None

    @property
    def at_first(self) -> bool:
        return self.index <= 0

    @property
    def at_last(self) -> bool:
        return self.index >= len(self.pages) - 1

    async def start(self) -> None:
        """Load the notebook and activate its first page."""
        nb = await self._state.get_one(self.notebook_id)
        if nb is None:
            raise NotFoundError(f"Notebook {self.notebook_id} not found")
        await self.go_to(self.pages[0].id)

    async def go_to(self, page_id: str) -> None:
        if all(p.id != page_id for p in self.pages):
            raise NotFoundError(f"Page {page_id} not found in {self.notebook_id}")
        self.active_id = page_id
        if self._session is not None:
            await self._session.open_page(page_id)

    async def next(self) -> None:
        """Move one page forward; no-op on the last page."""
        index = self.index
        pages = self.pages
        if index != -1 and index < len(pages) - 1:
            await self.go_to(pages[index + 1].id)

    async def previous(self) -> None:
        """Move one page back; no-op on the first page."""
        index = self.index
        if index > 0:
            await self.go_to(self.pages[index - 1].id)

    async def add(self) -> str:
        """Append a page and make it active."""
        page_id = await self._state.add_page(self.notebook_id)
        await self.go_to(page_id)
        return page_id

    async def delete_active(self) -> bool:
        """Delete the active page and fall back to the first page in order.

        Refused (returns False) when the notebook has a single page.
        """
        if self.active_id is None or len(self.pages) <= 1:
            return False
        deleted_id = self.active_id
        try:
            deleted = await self._state.delete_page(self.notebook_id, deleted_id)
        finally:
            # The page is gone locally even when the remote write failed.
            if self.active is None and self.pages:
                logger.info("Page %s removed; returning to first page", deleted_id)
                await self.go_to(self.pages[0].id)
        return deleted

    async def rename_active(self, title: str) -> None:
        if self.active_id is None:
            return
        await self._state.rename_page(self.notebook_id, self.active_id, title)
