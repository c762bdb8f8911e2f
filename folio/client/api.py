"""HTTP client for the Folio API and for signed content URLs."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from folio.config import ClientConfig
from folio.errors import FetchError, ForbiddenError, NotFoundError, SaveError, ValidationError
from folio.notebook.notebook import Notebook

logger = logging.getLogger("folio.api")

_ERRORS_BY_STATUS: dict[int, type[FetchError]] = {
    400: ValidationError,
    403: ForbiddenError,
    404: NotFoundError,
}


def _raise_for_status(response: httpx.Response) -> None:
    if response.is_success:
        return
    try:
        message = response.json().get("error", response.text)
    except ValueError:
        message = response.text
    error_cls = _ERRORS_BY_STATUS.get(response.status_code, FetchError)
    raise error_cls(f"{response.request.method} {response.request.url.path}: {message}", status_code=response.status_code)


class FolioApi:
    """Thin request/response wrapper over the notebook routes.

    Pass `transport` to run against something other than the network
    (tests mount the ASGI app directly).
    """

    def __init__(
        self,
        base_url: str,
        owner: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.owner = owner
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={"X-Folio-Owner": owner},
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_config(cls, config: ClientConfig) -> FolioApi:
        return cls(config.api_url, config.owner, timeout=config.timeout_seconds)

    async def __aenter__(self) -> FolioApi:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise FetchError(f"{method} {url}: {e}") from e
        _raise_for_status(response)
        return response

    # --- Metadata ---

    async def list_notebooks(self) -> list[Notebook]:
        response = await self._request("GET", "/api/notebooks")
        return [Notebook.model_validate(item) for item in response.json()]

    async def create_notebook(self, title: str | None = None) -> Notebook:
        response = await self._request("POST", "/api/notebooks", json={"title": title})
        return Notebook.model_validate(response.json())

    async def get_notebook(self, notebook_id: str) -> Notebook:
        response = await self._request("GET", f"/api/notebooks/{notebook_id}")
        return Notebook.model_validate(response.json())

    async def update_notebook(self, notebook_id: str, fields: dict[str, Any]) -> Notebook:
        response = await self._request("PATCH", f"/api/notebooks/{notebook_id}", json=fields)
        return Notebook.model_validate(response.json())

    async def delete_notebook(self, notebook_id: str) -> None:
        await self._request("DELETE", f"/api/notebooks/{notebook_id}")

    # --- Signed URLs ---

    async def upload_url(self, notebook_id: str, page_id: str) -> str:
        response = await self._request("GET", "/api/notebooks/urls/upload", params={"id": notebook_id, "pageId": page_id})
        return str(response.json()["url"])

    async def download_url(self, notebook_id: str, page_id: str) -> str:
        response = await self._request(
            "GET", "/api/notebooks/urls/download", params={"id": notebook_id, "pageId": page_id}
        )
        return str(response.json()["url"])

    async def asset_upload_url(self, filename: str, content_type: str) -> str:
        response = await self._request(
            "GET", "/api/assets/upload", params={"filename": filename, "contentType": content_type}
        )
        return str(response.json()["url"])

    # --- Content store ---

    async def put_blob(self, url: str, data: bytes | str, content_type: str) -> None:
        """PUT a body through a signed URL. Any failure is a SaveError."""
        try:
            response = await self._client.put(url, content=data, headers={"Content-Type": content_type})
        except httpx.HTTPError as e:
            raise SaveError(f"Upload failed: {e}") from e
        if not response.is_success:
            raise SaveError(f"Upload failed with status {response.status_code}")

    async def get_blob(self, url: str) -> str | None:
        """GET a body through a signed URL; None when the store answers non-2xx."""
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as e:
            raise FetchError(f"Download failed: {e}") from e
        if not response.is_success:
            logger.info("Content fetch returned %d", response.status_code)
            return None
        return response.text
