"""Notebook metadata store. One JSON record per notebook under {root}/{id}.json."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from folio.core import Result
from folio.notebook.notebook import UPDATABLE_FIELDS, Notebook, dedupe_tags, now_ms

logger = logging.getLogger("folio.metadata")


class MetadataStore:
    """Key-value store for notebook records, conditioned on the owning principal."""

    def __init__(self, root: Path) -> None:
        self._root = root
        self._root.mkdir(parents=True, exist_ok=True)

    def _path(self, notebook_id: str) -> Path:
        return self._root / f"{notebook_id}.json"

    def _read(self, notebook_id: str) -> Notebook | None:
        path = self._path(notebook_id)
        if "/" in notebook_id or not path.exists():
            return None
        return Notebook.model_validate_json(path.read_text())

    def put(self, notebook: Notebook) -> None:
        """Atomic write: write to .tmp, then rename."""
        path = self._path(notebook.id)
        tmp_path = path.with_suffix(".json.tmp")
        data = notebook.model_dump(by_alias=True)
        tmp_path.write_text(json.dumps(data, indent=2) + "\n")
        tmp_path.rename(path)
        logger.info("Saved notebook %s (%d pages)", notebook.id, len(notebook.pages))

    def list_by_owner(self, owner_id: str) -> list[Notebook]:
        """All notebooks owned by `owner_id`, most recently edited first."""
        notebooks: list[Notebook] = []
        for path in self._root.glob("*.json"):
            try:
                nb = Notebook.model_validate_json(path.read_text())
            except ValueError:
                logger.warning("Skipping corrupt notebook record: %s", path)
                continue
            if nb.owner_id == owner_id:
                notebooks.append(nb)
        notebooks.sort(key=lambda nb: nb.last_edited_at, reverse=True)
        return notebooks

    def get(self, notebook_id: str, owner_id: str) -> Result[Notebook]:
        result: Result[Notebook] = Result()
        nb = self._read(notebook_id)
        if nb is None:
            result.error("NOT_FOUND", f"Notebook {notebook_id} not found")
        elif nb.owner_id != owner_id:
            result.error("FORBIDDEN", f"Notebook {notebook_id} belongs to another owner")
        else:
            result.data = nb
        return result

    def update(self, notebook_id: str, owner_id: str, fields: dict[str, Any]) -> Result[Notebook]:
        """Apply `fields` only if the record's owner matches; always bumps last_edited_at."""
        result = self.get(notebook_id, owner_id)
        if not result.ok or result.data is None:
            return result

        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            result.error("VALIDATION", f"Fields cannot be updated: {', '.join(sorted(unknown))}")
            result.data = None
            return result

        problem = _check_fields(fields)
        if problem:
            result.error("VALIDATION", problem)
            result.data = None
            return result

        merged = result.data.model_dump()
        merged.update(fields)
        if isinstance(fields.get("tags"), list):
            merged["tags"] = dedupe_tags(list(fields["tags"]))
            if len(merged["tags"]) != len(fields["tags"]):
                result.warning("TAGS_NORMALIZED", "Blank or duplicate tags were dropped")
        merged["last_edited_at"] = now_ms()
        try:
            nb = Notebook.model_validate(merged)
        except ValidationError as e:
            result.error("VALIDATION", f"Invalid notebook fields: {e.error_count()} error(s)")
            result.data = None
            return result
        self.put(nb)
        result.data = nb
        return result

    def delete(self, notebook_id: str, owner_id: str) -> Result[Notebook]:
        """Remove the record if owned by `owner_id`; returns the removed record."""
        result = self.get(notebook_id, owner_id)
        if result.ok:
            self._path(notebook_id).unlink(missing_ok=True)
            logger.info("Deleted notebook %s", notebook_id)
        return result


def _check_fields(fields: dict[str, Any]) -> str | None:
    """First reason `fields` would break a notebook record, or None."""
    nulls = sorted(name for name, value in fields.items() if value is None)
    if nulls:
        return f"Fields cannot be null: {', '.join(nulls)}"
    if "pages" in fields:
        pages = fields["pages"]
        if not pages:
            return "A notebook needs at least one page"
        orders = [p.get("order", 0) if isinstance(p, dict) else p.order for p in pages]
        if len(set(orders)) != len(orders):
            return "Page order values must be unique"
    return None
