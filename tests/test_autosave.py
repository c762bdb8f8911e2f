"""Tests for the single-slot debounce timer."""

from __future__ import annotations

import asyncio

from folio.editor.autosave import AutoSave

DELAY = 0.1


class Recorder:
    def __init__(self) -> None:
        self.calls = 0
        self.gate: asyncio.Event | None = None

    async def __call__(self) -> None:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()


async def test_bursts_coalesce_into_one_save() -> None:
    rec = Recorder()
    auto = AutoSave(rec, DELAY)
    for _ in range(5):
        auto.trigger()
        await asyncio.sleep(DELAY / 5)
    assert rec.calls == 0
    await asyncio.sleep(DELAY * 3)
    await auto.drain()
    assert rec.calls == 1
    assert auto.pending is False


async def test_cancel_drops_pending_save() -> None:
    rec = Recorder()
    auto = AutoSave(rec, DELAY)
    auto.trigger()
    assert auto.pending is True
    auto.cancel()
    await asyncio.sleep(DELAY * 3)
    assert rec.calls == 0


async def test_save_now_runs_immediately_and_cancels_timer() -> None:
    rec = Recorder()
    auto = AutoSave(rec, DELAY)
    auto.trigger()
    await auto.save_now()
    assert rec.calls == 1
    await asyncio.sleep(DELAY * 3)
    assert rec.calls == 1


async def test_trigger_does_not_cancel_inflight_save() -> None:
    rec = Recorder()
    rec.gate = asyncio.Event()
    auto = AutoSave(rec, DELAY)
    auto.trigger()
    await asyncio.sleep(DELAY * 2)
    assert rec.calls == 1
    assert auto.saving is True

    auto.trigger()
    rec.gate.set()
    await asyncio.sleep(DELAY * 3)
    await auto.drain()
    assert rec.calls == 2
    assert auto.saving is False


async def test_failed_save_does_not_break_timer() -> None:
    calls = 0

    async def failing() -> None:
        nonlocal calls
        calls += 1
        raise RuntimeError("boom")

    auto = AutoSave(failing, DELAY)
    auto.trigger()
    await asyncio.sleep(DELAY * 3)
    await auto.drain()
    auto.trigger()
    await asyncio.sleep(DELAY * 3)
    await auto.drain()
    assert calls == 2


async def test_saves_run_one_at_a_time_in_order() -> None:
    order: list[str] = []
    active = 0
    started = 0
    overlapped = False

    async def save() -> None:
        nonlocal active, started, overlapped
        active += 1
        started += 1
        overlapped = overlapped or active > 1
        label = f"save{started}"
        order.append(f"{label}-start")
        await asyncio.sleep(DELAY * 2 if label == "save1" else 0)
        order.append(f"{label}-end")
        active -= 1

    auto = AutoSave(save, DELAY)
    auto.trigger()
    await asyncio.sleep(DELAY * 1.5)
    auto.trigger()
    await asyncio.sleep(DELAY * 4)
    await auto.drain()
    assert overlapped is False
    assert order == ["save1-start", "save1-end", "save2-start", "save2-end"]
