"""Client-side notebook state: the in-memory cache every editor reads through.

Metadata is cached per notebook; page bodies are loaded lazily from the
content store through signed URLs and cached on their Page. Only methods on
NotebookState mutate the cache.

Field policy for optimistic updates:
    soft fields (title, tags, snippet, pages) keep the local value when the
    remote write fails; hard fields (is_favorite) are rolled back. Either way
    the failure is raised as UpdateError.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from pydantic.alias_generators import to_camel

from folio.client.api import FolioApi
from folio.errors import CreateError, FetchError, NotFoundError, SaveError, UpdateError
from folio.notebook.html import make_snippet
from folio.notebook.notebook import UPDATABLE_FIELDS, Notebook, Page, dedupe_tags, now_ms

logger = logging.getLogger("folio.state")

HARD_FIELDS = frozenset({"is_favorite"})


def _wire_fields(fields: dict[str, Any]) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    for name, value in fields.items():
        if name == "pages":
            value = [page.model_dump(by_alias=True) for page in value]
        payload[to_camel(name)] = value
    return payload


class NotebookState:
    def __init__(self, api: FolioApi) -> None:
        self._api = api
        self.notebooks: list[Notebook] = []
        self.loading = False

    # --- Cache reads (no network) ---

    def find(self, notebook_id: str) -> Notebook | None:
        for nb in self.notebooks:
            if nb.id == notebook_id:
                return nb
        return None

    def search(self, query: str) -> list[Notebook]:
        """Cached notebooks whose title contains `query`, case-insensitive."""
        needle = query.strip().lower()
        if not needle:
            return list(self.notebooks)
        return [nb for nb in self.notebooks if needle in nb.title.lower()]

    def favorites(self) -> list[Notebook]:
        return [nb for nb in self.notebooks if nb.is_favorite]

    def _carry_content(self, fresh: Notebook) -> Notebook:
        """Copy already-loaded page bodies from the cached record onto `fresh`."""
        cached = self.find(fresh.id)
        if cached is None:
            return fresh
        for page in fresh.pages:
            old = cached.get_page(page.id)
            if old is not None and old.content is not None:
                page.content = old.content
        return fresh

    def _store(self, nb: Notebook) -> None:
        for i, existing in enumerate(self.notebooks):
            if existing.id == nb.id:
                self.notebooks[i] = nb
                return
        self.notebooks.append(nb)

    # --- Notebooks ---

    async def fetch_all(self, *, keep_content: bool = True) -> None:
        """Replace the cached list with the principal's notebooks, newest edit first."""
        self.loading = True
        try:
            fetched = await self._api.list_notebooks()
        except FetchError as e:
            logger.error("Error fetching notebooks: %s", e)
            return
        finally:
            self.loading = False
        if keep_content:
            fetched = [self._carry_content(nb) for nb in fetched]
        self.notebooks = fetched
        logger.info("Fetched %d notebooks", len(fetched))

    async def refresh(self) -> None:
        """Deliberate refresh: refetch and drop every cached page body."""
        await self.fetch_all(keep_content=False)

    async def create(self, title: str | None = None) -> str:
        try:
            nb = await self._api.create_notebook(title)
        except FetchError as e:
            logger.error("Error creating notebook: %s", e)
            raise CreateError(f"Could not create notebook: {e}") from e
        self.notebooks.insert(0, nb)
        return nb.id

    async def update(self, notebook_id: str, **fields: Any) -> None:
        """Apply `fields` locally right away, then write them through to the API."""
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
        if "tags" in fields:
            fields["tags"] = dedupe_tags(list(fields["tags"]))

        nb = self.find(notebook_id)
        previous: dict[str, Any] = {}
        if nb is not None:
            for name, value in fields.items():
                previous[name] = getattr(nb, name)
                setattr(nb, name, value)
            nb.last_edited_at = now_ms()

        try:
            await self._api.update_notebook(notebook_id, _wire_fields(fields))
        except FetchError as e:
            logger.error("Error updating notebook %s: %s", notebook_id, e)
            if nb is not None:
                for name in HARD_FIELDS & previous.keys():
                    setattr(nb, name, previous[name])
            raise UpdateError(f"Could not update notebook {notebook_id}: {e}") from e

    async def delete(self, notebook_id: str) -> bool:
        """Drop the notebook locally, then remotely. Returns whether the remote delete succeeded."""
        self.notebooks = [nb for nb in self.notebooks if nb.id != notebook_id]
        try:
            await self._api.delete_notebook(notebook_id)
        except FetchError as e:
            logger.error("Error deleting notebook %s: %s", notebook_id, e)
            return False
        return True

    async def get_one(self, notebook_id: str) -> Notebook | None:
        """Read-through lookup; a cached record only counts once some page body is loaded."""
        cached = self.find(notebook_id)
        if cached is not None and any(p.content is not None for p in cached.pages):
            return cached

        try:
            fetched = await self._api.get_notebook(notebook_id)
        except FetchError as e:
            logger.error("Error getting notebook %s: %s", notebook_id, e)
            return None

        nb = self._carry_content(fetched)
        self._store(nb)
        if not nb.pages:
            await self._create_first_page(nb)
        return self.find(notebook_id)

    async def _create_first_page(self, nb: Notebook) -> None:
        page = nb.new_page()
        logger.info("Notebook %s has no pages; creating %s", nb.id, page.id)
        try:
            await self.update(nb.id, pages=[page])
        except UpdateError:
            logger.warning("First page of %s exists only locally until the next page update", nb.id)

    async def toggle_favorite(self, notebook_id: str) -> bool:
        nb = await self._require(notebook_id)
        new_value = not nb.is_favorite
        await self.update(notebook_id, is_favorite=new_value)
        return new_value

    async def _require(self, notebook_id: str) -> Notebook:
        nb = self.find(notebook_id) or await self.get_one(notebook_id)
        if nb is None:
            raise NotFoundError(f"Notebook {notebook_id} not found")
        return nb

    # --- Page content ---

    def _page(self, notebook_id: str, page_id: str) -> Page | None:
        nb = self.find(notebook_id)
        return nb.get_page(page_id) if nb is not None else None

    async def load_content(
        self,
        notebook_id: str,
        page_id: str,
        *,
        is_current: Callable[[], bool] | None = None,
    ) -> str:
        """Read-through for one page body. Missing blobs and transport errors yield "".

        `is_current` is checked once the download completes; when it returns
        False the result is handed back but not written into the cache.
        """
        page = self._page(notebook_id, page_id)
        if page is not None and page.content is not None:
            return page.content

        try:
            url = await self._api.download_url(notebook_id, page_id)
            html = await self._api.get_blob(url)
        except FetchError as e:
            logger.error("Error loading content for %s/%s: %s", notebook_id, page_id, e)
            return ""
        html = html or ""

        if is_current is not None and not is_current():
            logger.info("Discarding superseded content for page %s", page_id)
            return html

        # Look the page up again; the record may have been replaced while awaiting.
        page = self._page(notebook_id, page_id)
        if page is not None:
            page.content = html
        return html

    async def save_content(self, notebook_id: str, html: str, page_id: str) -> None:
        """Upload `html` as the page body, then refresh the notebook snippet."""
        try:
            url = await self._api.upload_url(notebook_id, page_id)
        except FetchError as e:
            logger.error("Error issuing upload URL for %s/%s: %s", notebook_id, page_id, e)
            raise SaveError(f"Could not save page {page_id}: {e}") from e
        await self._api.put_blob(url, html.encode(), "text/html")

        try:
            await self.update(notebook_id, snippet=make_snippet(html))
        except UpdateError:
            logger.warning("Saved %s/%s but the snippet update failed", notebook_id, page_id)

        page = self._page(notebook_id, page_id)
        if page is not None:
            page.content = html

    # --- Pages ---

    async def add_page(self, notebook_id: str) -> str:
        nb = await self._require(notebook_id)
        page = nb.new_page()
        await self.update(notebook_id, pages=[*nb.pages, page])
        return page.id

    async def delete_page(self, notebook_id: str, page_id: str) -> bool:
        """Remove a page. The last remaining page cannot be deleted."""
        nb = await self._require(notebook_id)
        if nb.get_page(page_id) is None:
            return False
        if len(nb.pages) <= 1:
            logger.info("Refusing to delete the only page of %s", notebook_id)
            return False
        await self.update(notebook_id, pages=[p for p in nb.pages if p.id != page_id])
        return True

    async def rename_page(self, notebook_id: str, page_id: str, title: str) -> None:
        nb = await self._require(notebook_id)
        if nb.get_page(page_id) is None:
            raise NotFoundError(f"Page {page_id} not found in {notebook_id}")
        pages = [p.model_copy(update={"title": title}) if p.id == page_id else p for p in nb.pages]
        await self.update(notebook_id, pages=pages)

    # --- Assets ---

    async def upload_asset(self, filename: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        """Upload a file and return its embeddable URL (signed query stripped)."""
        try:
            url = await self._api.asset_upload_url(filename, content_type)
        except FetchError as e:
            raise SaveError(f"Could not upload {filename}: {e}") from e
        await self._api.put_blob(url, data, content_type)
        return url.split("?", 1)[0]
