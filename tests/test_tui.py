"""Tests for mdpager.tui -- the event loop and differential renderer."""

from __future__ import annotations

import asyncio

import pytest

from mdpager.components.pager import Pager
from mdpager.errors import RunLoopError
from mdpager.render.pipeline import RenderedDocument
from mdpager.tui import App, Command, Event, KeyEvent, SizeEvent
from tests.virtual_terminal import VirtualTerminal


def _pager(n: int = 100) -> Pager:
    return Pager(RenderedDocument("\n".join(f"line {i}" for i in range(n))), "README.md")


class RecordingModel:
    def __init__(self, fail_on: str | None = None) -> None:
        self.events: list[Event] = []
        self.fail_on = fail_on

    def update(self, event: Event) -> Command | None:
        self.events.append(event)
        if isinstance(event, KeyEvent):
            if event.key == self.fail_on:
                raise ValueError("model blew up")
            if event.key == "q":
                return Command.QUIT
        return None

    def view(self) -> list[str]:
        return [f"{len(self.events)} events"]


# ---------------------------------------------------------------------------
# Run loop
# ---------------------------------------------------------------------------


class TestRunLoop:
    @pytest.mark.asyncio
    async def test_quit_restores_terminal(self) -> None:
        term = VirtualTerminal()
        app = App(term, _pager())
        task = asyncio.create_task(app.run())
        await asyncio.sleep(0)

        assert term.started
        assert term.alt_screen
        assert not term.cursor_visible
        assert "README.md" in term.output

        term.simulate_input("q")
        await task

        assert not term.started
        assert not term.alt_screen
        assert term.cursor_visible

    @pytest.mark.asyncio
    async def test_model_error_becomes_run_loop_error(self) -> None:
        term = VirtualTerminal()
        app = App(term, RecordingModel(fail_on="x"))
        task = asyncio.create_task(app.run())
        await asyncio.sleep(0)

        term.simulate_input("x")
        with pytest.raises(RunLoopError, match="model blew up"):
            await task
        assert not term.alt_screen

    @pytest.mark.asyncio
    async def test_input_after_quit_is_dropped(self) -> None:
        term = VirtualTerminal()
        model = RecordingModel()
        app = App(term, model)
        task = asyncio.create_task(app.run())
        await asyncio.sleep(0)

        app.handle_input("qj")
        await task
        assert model.events == [SizeEvent(80, 24), KeyEvent("q")]


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


class TestDispatch:
    def test_start_sends_terminal_size(self) -> None:
        model = RecordingModel()
        App(VirtualTerminal(rows=30, columns=100), model).start()
        assert model.events == [SizeEvent(100, 30)]

    def test_keys_are_decoded(self) -> None:
        term = VirtualTerminal()
        model = RecordingModel()
        App(term, model).start()
        term.simulate_input("j\x1b[B\x04")
        assert model.events[1:] == [KeyEvent("j"), KeyEvent("down"), KeyEvent("ctrl+d")]

    def test_resize_is_dispatched(self) -> None:
        term = VirtualTerminal()
        pager = _pager()
        App(term, pager).start()
        term.simulate_resize(rows=30)
        assert pager.viewport.height == 26


# ---------------------------------------------------------------------------
# Differential rendering
# ---------------------------------------------------------------------------


class TestDifferentialRender:
    def test_unchanged_frame_writes_nothing(self) -> None:
        term = VirtualTerminal()
        app = App(term, _pager())
        app.start()
        term.clear_buffer()
        app.do_render()
        assert term.output == ""

    def test_scrolling_leaves_header_alone(self) -> None:
        term = VirtualTerminal()
        app = App(term, _pager())
        app.start()
        term.clear_buffer()

        term.simulate_input("j")

        assert "\x1b[1;1H" not in term.output
        assert "\x1b[2;1H" not in term.output
        assert "\x1b[3;1Hline 1\x1b[K" in term.output
        assert "\x1b[2J" not in term.output

    def test_width_change_redraws_everything(self) -> None:
        term = VirtualTerminal()
        app = App(term, _pager())
        app.start()
        assert app.full_redraws == 1

        term.clear_buffer()
        term.simulate_resize(columns=100)
        assert app.full_redraws == 2
        assert term.output.startswith("\x1b[2J")
        assert "\x1b[1;1H" in term.output

    def test_height_change_is_differential(self) -> None:
        term = VirtualTerminal()
        app = App(term, _pager())
        app.start()
        term.simulate_resize(rows=30)
        assert app.full_redraws == 1

    def test_view_is_cut_to_terminal_height(self) -> None:
        class TallModel(RecordingModel):
            def view(self) -> list[str]:
                return [f"row {i}" for i in range(10)]

        term = VirtualTerminal(rows=5)
        App(term, TallModel()).start()
        assert "\x1b[5;1Hrow 4" in term.output
        assert "\x1b[6;1H" not in term.output
