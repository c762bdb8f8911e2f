r"""Editor session: turns edits on the active page into debounced saves.

Status flow per session:

    initializing -> idle -> dirty -> saving -> saved -> idle
                                         \-> error -> (retry) -> saving

Opening a page always re-enters `initializing`, cancels the pending timer and
bumps the generation counter, so neither a late download nor a stale timer
can touch the newly opened page. Title and tag changes bypass the timer and
are written straight through the state container.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import StrEnum

from folio.client.state import NotebookState
from folio.config import EditorConfig
from folio.editor.autosave import AutoSave
from folio.errors import FolioError, UpdateError
from folio.notebook.html import Heading, extract_headings

logger = logging.getLogger("folio.editor")


class SaveStatus(StrEnum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    DIRTY = "dirty"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


StatusListener = Callable[[SaveStatus], None]


class EditorSession:
    def __init__(self, state: NotebookState, notebook_id: str, config: EditorConfig | None = None) -> None:
        config = config or EditorConfig()
        self._state = state
        self.notebook_id = notebook_id
        self._init_grace = config.init_grace_seconds
        self._saved_display = config.saved_display_seconds
        self._autosave = AutoSave(self._save, config.debounce_seconds)
        self._generation = 0
        self._save_seq = 0
        self._settle_handle: asyncio.TimerHandle | None = None
        self._listeners: list[StatusListener] = []

        self.page_id: str | None = None
        self.document = ""
        self.status = SaveStatus.IDLE
        self.last_error: FolioError | None = None

    def on_status(self, listener: StatusListener) -> None:
        self._listeners.append(listener)

    def _set_status(self, status: SaveStatus) -> None:
        if status == self.status:
            return
        self.status = status
        for listener in self._listeners:
            listener(status)

    def _is_generation(self, generation: int) -> Callable[[], bool]:
        return lambda: generation == self._generation

    # --- Page loading ---

    async def open_page(self, page_id: str) -> None:
        """Load `page_id` into the session, discarding any pending save for the previous page."""
        self._autosave.cancel()
        self._cancel_settle()
        self._generation += 1
        generation = self._generation
        self.page_id = page_id
        self.last_error = None
        self._set_status(SaveStatus.INITIALIZING)
        logger.info("Loading content for page %s", page_id)

        html = await self._state.load_content(self.notebook_id, page_id, is_current=self._is_generation(generation))
        if generation != self._generation:
            return
        self.document = html

        # Programmatic load must not look like a user edit.
        await asyncio.sleep(self._init_grace)
        if generation == self._generation:
            self._set_status(SaveStatus.IDLE)

    # --- Body edits ---

    def edit(self, html: str) -> None:
        """Record a user edit of the page body and restart the debounce timer."""
        if self.status == SaveStatus.INITIALIZING or self.page_id is None:
            return
        self.document = html
        if self.status == SaveStatus.ERROR:
            # Stay in error until the user retries; the retry saves this document.
            return
        self._cancel_settle()
        self._set_status(SaveStatus.DIRTY)
        self._autosave.trigger()

    async def _save(self) -> None:
        page_id = self.page_id
        if page_id is None:
            return
        generation = self._generation
        self._save_seq += 1
        seq = self._save_seq
        # Serialize at fire time so the save carries the latest document.
        html = self.document
        self._set_status(SaveStatus.SAVING)
        logger.info("Auto-saving page %s", page_id)
        try:
            await self._state.save_content(self.notebook_id, html, page_id)
        except FolioError as e:
            logger.error("Save of page %s failed: %s", page_id, e)
            if self._is_latest_save(generation, seq):
                self.last_error = e
                self._set_status(SaveStatus.ERROR)
            return

        if self._is_latest_save(generation, seq):
            self._set_status(SaveStatus.SAVED)
            self._settle_handle = asyncio.get_running_loop().call_later(self._saved_display, self._settle)

    def _is_latest_save(self, generation: int, seq: int) -> bool:
        # Only the newest save on the current page may report; newer edits keep `dirty`.
        return generation == self._generation and seq == self._save_seq and self.status == SaveStatus.SAVING

    def _settle(self) -> None:
        self._settle_handle = None
        if self.status == SaveStatus.SAVED:
            self._set_status(SaveStatus.IDLE)

    def _cancel_settle(self) -> None:
        if self._settle_handle is not None:
            self._settle_handle.cancel()
            self._settle_handle = None

    async def retry(self) -> None:
        """User-initiated retry after a failed save; saves the latest document."""
        if self.status != SaveStatus.ERROR:
            return
        self.last_error = None
        await self._autosave.save_now()

    async def flush(self) -> None:
        """Save now if there is an unsaved edit."""
        if self.status == SaveStatus.DIRTY:
            await self._autosave.save_now()
        await self._autosave.drain()

    async def close(self) -> None:
        """Tear down: drop the pending timer and wait for in-flight saves."""
        self._autosave.cancel()
        self._cancel_settle()
        await self._autosave.drain()

    @property
    def has_pending_save(self) -> bool:
        return self._autosave.pending

    async def wait_saved(self) -> None:
        """Wait for saves already handed to the store."""
        await self._autosave.drain()

    def table_of_contents(self) -> list[Heading]:
        return extract_headings(self.document)

    # --- Metadata edits (not debounced) ---

    async def set_title(self, title: str) -> None:
        await self._write_metadata(title=title)

    async def add_tag(self, tag: str) -> None:
        tag = tag.strip()
        nb = self._state.find(self.notebook_id)
        if not tag or nb is None or tag in nb.tags:
            return
        await self._write_metadata(tags=[*nb.tags, tag])

    async def remove_tag(self, tag: str) -> None:
        nb = self._state.find(self.notebook_id)
        if nb is None or tag not in nb.tags:
            return
        await self._write_metadata(tags=[t for t in nb.tags if t != tag])

    async def _write_metadata(self, **fields: object) -> None:
        # Title and tags are soft fields: the local value stands if the write fails.
        try:
            await self._state.update(self.notebook_id, **fields)
        except UpdateError as e:
            logger.warning("Metadata update for %s not persisted: %s", self.notebook_id, e)
