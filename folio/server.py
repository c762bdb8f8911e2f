"""FastAPI server for Folio: notebook metadata routes, the signed-URL issuer, and signed content access."""

from __future__ import annotations

import logging
import mimetypes
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from folio.config import data_dir
from folio.core import Result
from folio.notebook.notebook import DEFAULT_TITLE, Notebook, Page, page_content_key
from folio.storage.backend import get_backend
from folio.storage.signing import asset_key

logger = logging.getLogger("folio.server")

DEFAULT_OWNER = "local"

_STATUS_BY_CODE = {"NOT_FOUND": 404, "FORBIDDEN": 403, "VALIDATION": 400}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    backend = get_backend()
    logger.info("Serving notebooks from %s", data_dir(backend.config))
    yield


app = FastAPI(title="Folio", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "PATCH", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


def current_owner(x_folio_owner: str | None = Header(default=None)) -> str:
    """The calling principal; requests without the header act as the local owner."""
    return x_folio_owner or DEFAULT_OWNER


def _error_response(result: Result[Any]) -> JSONResponse:
    code = result.error_code or "ERROR"
    message = next((d.message for d in result.diagnostics if d.code == code), "Request failed")
    return JSONResponse(status_code=_STATUS_BY_CODE.get(code, 500), content={"error": message, "code": code})


def _bad_request(message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": message, "code": "VALIDATION"})


def _base_url(request: Request) -> str:
    return get_backend().config.public_url or str(request.base_url)


@app.exception_handler(Exception)
async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error", "code": "INTERNAL"})


@app.get("/api/health")
async def health() -> dict[str, Any]:
    return {"ok": True}


# --- Notebooks ---


class CreateNotebookRequest(BaseModel):
    title: str | None = None


class NotebookPatch(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str | None = None
    snippet: str | None = None
    is_favorite: bool | None = None
    tags: list[str] | None = None
    pages: list[Page] | None = None


@app.get("/api/notebooks")
async def list_notebooks(owner: str = Depends(current_owner)) -> list[dict[str, Any]]:
    notebooks = get_backend().metadata.list_by_owner(owner)
    return [nb.model_dump(by_alias=True) for nb in notebooks]


@app.post("/api/notebooks", status_code=201)
async def create_notebook(request: CreateNotebookRequest, owner: str = Depends(current_owner)) -> dict[str, Any]:
    nb = Notebook(owner_id=owner, title=request.title or DEFAULT_TITLE)
    nb.pages.append(nb.new_page())
    get_backend().metadata.put(nb)
    logger.info("Created notebook %s for %s", nb.id, owner)
    return nb.model_dump(by_alias=True)


@app.get("/api/notebooks/urls/upload")
async def upload_url(
    request: Request,
    notebook_id: str | None = Query(default=None, alias="id"),
    page_id: str | None = Query(default=None, alias="pageId"),
    owner: str = Depends(current_owner),
) -> Any:
    return _issue_page_url("PUT", request, notebook_id, page_id, owner)


@app.get("/api/notebooks/urls/download")
async def download_url(
    request: Request,
    notebook_id: str | None = Query(default=None, alias="id"),
    page_id: str | None = Query(default=None, alias="pageId"),
    owner: str = Depends(current_owner),
) -> Any:
    return _issue_page_url("GET", request, notebook_id, page_id, owner)


def _issue_page_url(method: str, request: Request, notebook_id: str | None, page_id: str | None, owner: str) -> Any:
    if not notebook_id or not page_id:
        return _bad_request("Notebook ID and Page ID are required")
    backend = get_backend()
    result = backend.metadata.get(notebook_id, owner)
    if not result.ok:
        return _error_response(result)
    key = page_content_key(owner, notebook_id, page_id)
    return {"url": backend.signer.sign(method, key, _base_url(request))}


@app.get("/api/notebooks/{notebook_id}")
async def get_notebook(notebook_id: str, owner: str = Depends(current_owner)) -> Any:
    result = get_backend().metadata.get(notebook_id, owner)
    if not result.ok or result.data is None:
        return _error_response(result)
    return result.data.model_dump(by_alias=True)


@app.patch("/api/notebooks/{notebook_id}")
async def update_notebook(notebook_id: str, patch: NotebookPatch, owner: str = Depends(current_owner)) -> Any:
    fields = patch.model_dump(exclude_unset=True)
    result = get_backend().metadata.update(notebook_id, owner, fields)
    if not result.ok or result.data is None:
        logger.warning("Rejected update of %s by %s: %s", notebook_id, owner, result.error_code)
        return _error_response(result)
    return result.data.model_dump(by_alias=True)


@app.delete("/api/notebooks/{notebook_id}")
async def delete_notebook(notebook_id: str, owner: str = Depends(current_owner)) -> Any:
    backend = get_backend()
    result = backend.metadata.delete(notebook_id, owner)
    if not result.ok:
        return _error_response(result)
    backend.content.delete_prefix(f"notes/{owner}/{notebook_id}")
    return {"success": True}


# --- Assets ---


@app.get("/api/assets/upload")
async def asset_upload_url(
    request: Request,
    filename: str | None = None,
    content_type: str | None = Query(default=None, alias="contentType"),
) -> Any:
    if not filename or not content_type:
        return _bad_request("Filename and ContentType are required")
    key = asset_key(filename)
    return {"url": get_backend().signer.sign("PUT", key, _base_url(request))}


# --- Signed content access ---


@app.put("/content/{key:path}")
async def put_content(key: str, request: Request, expires: int = 0, signature: str = "") -> Any:
    backend = get_backend()
    if not backend.signer.verify("PUT", key, expires, signature):
        return JSONResponse(status_code=403, content={"error": "Invalid or expired signature", "code": "FORBIDDEN"})
    try:
        backend.content.put(key, await request.body())
    except ValueError as e:
        return _bad_request(str(e))
    return {"ok": True}


@app.get("/content/{key:path}")
async def get_content(key: str, expires: int = 0, signature: str = "") -> Any:
    backend = get_backend()
    # Uploaded assets are publicly embeddable by their base URL.
    if not key.startswith("assets/") and not backend.signer.verify("GET", key, expires, signature):
        return JSONResponse(status_code=403, content={"error": "Invalid or expired signature", "code": "FORBIDDEN"})
    try:
        data = backend.content.get(key)
    except ValueError as e:
        return _bad_request(str(e))
    if data is None:
        return JSONResponse(status_code=404, content={"error": f"No content at {key}", "code": "NOT_FOUND"})
    media_type = mimetypes.guess_type(key)[0] or "application/octet-stream"
    return Response(content=data, media_type=media_type)
