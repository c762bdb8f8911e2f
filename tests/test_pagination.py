"""Tests for the page cursor."""

from __future__ import annotations

import pytest

from folio.client.state import NotebookState
from folio.config import EditorConfig
from folio.editor.pagination import PageCursor
from folio.editor.session import EditorSession
from folio.errors import NotFoundError

FAST = EditorConfig(debounce_seconds=0.1, init_grace_seconds=0, saved_display_seconds=0.05)


async def _cursor(state: NotebookState, extra_pages: int = 0) -> PageCursor:
    nb_id = await state.create("Paged")
    cursor = PageCursor(state, nb_id)
    await cursor.start()
    for _ in range(extra_pages):
        await state.add_page(nb_id)
    return cursor


async def test_start_activates_first_page(state: NotebookState) -> None:
    cursor = await _cursor(state)
    assert cursor.position == 1
    assert cursor.label == "Page 1 of 1"
    assert cursor.at_first and cursor.at_last


async def test_start_unknown_notebook(state: NotebookState) -> None:
    cursor = PageCursor(state, "missing")
    with pytest.raises(NotFoundError):
        await cursor.start()


async def test_next_and_previous_stop_at_boundaries(state: NotebookState) -> None:
    cursor = await _cursor(state, extra_pages=2)
    first = cursor.active_id

    await cursor.previous()
    assert cursor.active_id == first

    await cursor.next()
    await cursor.next()
    assert cursor.label == "Page 3 of 3"
    assert cursor.at_last

    await cursor.next()
    assert cursor.position == 3

    await cursor.previous()
    assert cursor.position == 2


async def test_add_appends_and_activates(state: NotebookState) -> None:
    cursor = await _cursor(state)
    page_id = await cursor.add()
    assert cursor.active_id == page_id
    assert cursor.label == "Page 2 of 2"
    assert cursor.active is not None
    assert cursor.active.title == "Page 2"
    assert cursor.active.order == 1


async def test_pages_follow_order_not_list_position(state: NotebookState) -> None:
    cursor = await _cursor(state, extra_pages=2)
    nb = state.find(cursor.notebook_id)
    assert nb is not None
    first, second, third = nb.sorted_pages()

    reordered = [
        third.model_copy(update={"order": 0}),
        first.model_copy(update={"order": 1}),
        second.model_copy(update={"order": 2}),
    ]
    await state.update(cursor.notebook_id, pages=reordered)

    assert [p.id for p in cursor.pages] == [third.id, first.id, second.id]
    await cursor.go_to(third.id)
    assert cursor.at_first


async def test_go_to_unknown_page(state: NotebookState) -> None:
    cursor = await _cursor(state)
    with pytest.raises(NotFoundError):
        await cursor.go_to("page_nope")


async def test_delete_active_falls_back_to_first(state: NotebookState) -> None:
    cursor = await _cursor(state, extra_pages=2)
    first = cursor.active_id
    await cursor.next()
    await cursor.next()
    doomed = cursor.active_id

    assert await cursor.delete_active() is True
    assert cursor.active_id == first
    assert doomed not in [p.id for p in cursor.pages]
    assert cursor.label == "Page 1 of 2"


async def test_delete_only_page_refused(state: NotebookState) -> None:
    cursor = await _cursor(state)
    only = cursor.active_id
    assert await cursor.delete_active() is False
    assert cursor.active_id == only
    assert len(cursor.pages) == 1


async def test_attached_session_follows_cursor(state: NotebookState) -> None:
    nb_id = await state.create("With editor")
    session = EditorSession(state, nb_id, FAST)
    cursor = PageCursor(state, nb_id, session)
    await cursor.start()
    assert session.page_id == cursor.active_id

    session.edit("<p>first page</p>")
    await session.flush()

    await cursor.add()
    assert session.page_id == cursor.active_id
    assert session.document == ""

    await cursor.previous()
    assert session.document == "<p>first page</p>"
    await session.close()


async def test_rename_active_keeps_position(state: NotebookState) -> None:
    cursor = await _cursor(state, extra_pages=1)
    await cursor.next()
    await cursor.rename_active("Appendix")
    assert cursor.active is not None
    assert cursor.active.title == "Appendix"
    assert cursor.position == 2
    assert [p.title for p in cursor.pages] == ["Page 1", "Appendix"]
