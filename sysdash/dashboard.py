"""Live host-metrics dashboard.

Shows memory, swap, OS identity and per-CPU details as one bordered list
that is re-sampled every tick. Press ``?`` to open the overlay and ``q`` to
quit.

Usage:
    sysdash
    SYSDASH_LOG_FILE=/tmp/sysdash.log sysdash
"""

from __future__ import annotations

import argparse
import curses
import enum
import logging
import sys
from dataclasses import dataclass
from typing import Any, Protocol

import psutil

from sysdash.config import load_config, log_level
from sysdash.errors import SysdashError, UnsupportedPlatformError
from sysdash.logsink import close_log_sink, open_log_sink
from sysdash.metrics import MetricsProvider, MetricsSnapshot, is_supported_system
from sysdash.terminal import KeyEvent, KeyKind, RenderFn, TerminalSession

log = logging.getLogger(__name__)

# ── Constants ──────────────────────────────────────────────────────────────

POLL_TIMEOUT_MS = 16
LIST_TITLE = "Block Title"
MODAL_TEXT = "modal open"
UNKNOWN = "Unknown"


# ── Collaborator interfaces ────────────────────────────────────────────────


class Provider(Protocol):
    def refresh_all(self) -> None: ...

    def snapshot(self) -> MetricsSnapshot: ...


class Session(Protocol):
    highlight_attr: int

    def __enter__(self) -> Session: ...

    def __exit__(self, *exc: Any) -> None: ...

    def clear(self) -> None: ...

    def draw_frame(self, render: RenderFn) -> None: ...

    def poll_event(self, timeout_ms: int) -> KeyEvent | None: ...


# ── UI state and input ─────────────────────────────────────────────────────


@dataclass
class UiState:
    """Mutable state carried from one tick to the next."""

    modal_open: bool = False

    @property
    def is_modal_open(self) -> bool:
        return self.modal_open

    def open_modal(self) -> None:
        # Nothing closes the modal again once it is open
        self.modal_open = True


class Transition(enum.Enum):
    OPEN_MODAL = "open_modal"
    QUIT = "quit"
    IGNORE = "ignore"


def dispatch_key(state: UiState, event: KeyEvent | None) -> Transition:
    """Apply one key event to *state* and say what the loop should do."""
    if event is None or event.kind is not KeyKind.PRESS:
        return Transition.IGNORE
    if event.code == "?":
        log.info("question mark pressed, opening modal")
        state.open_modal()
        return Transition.OPEN_MODAL
    if event.code == "q":
        return Transition.QUIT
    return Transition.IGNORE


# ── Formatting ─────────────────────────────────────────────────────────────

_ESCAPES: dict[int, str] = {
    c: f"\\u{{{c:x}}}" for c in (*range(0x20), *range(0x7F, 0xA0))
}
_ESCAPES.update(
    {
        0: "\\0",
        ord("\t"): "\\t",
        ord("\n"): "\\n",
        ord("\r"): "\\r",
        ord("\\"): "\\\\",
        ord('"'): '\\"',
    }
)


def quoted(value: str) -> str:
    """Double-quote *value*, escaping backslashes, quotes and control characters."""
    return '"' + value.translate(_ESCAPES) + '"'


def _or_unknown(value: str | None) -> str:
    return quoted(UNKNOWN if value is None else value)


def build_display_lines(snapshot: MetricsSnapshot) -> list[str]:
    """Nine summary lines followed by one line per CPU."""
    lines = [
        f"total memory: {snapshot.total_memory} bytes",
        f"used memory : {snapshot.used_memory} bytes",
        f"total swap  : {snapshot.total_swap} bytes",
        f"used swap   : {snapshot.used_swap} bytes",
        f"System name:             {_or_unknown(snapshot.os_name)}",
        f"System kernel version:   {_or_unknown(snapshot.kernel_version)}",
        f"System OS version:       {_or_unknown(snapshot.os_version)}",
        f"System host name:        {_or_unknown(snapshot.host_name)}",
        f"Number of CPUs: {len(snapshot.cpus)}",
    ]
    lines.extend(
        f"cpu {quoted(cpu.name)}, {cpu.frequency} , "
        f"{quoted(cpu.brand)}, {quoted(cpu.vendor_id)}  "
        for cpu in snapshot.cpus
    )
    return lines


# ── Curses drawing ─────────────────────────────────────────────────────────


def _safe(win: curses.window, *args: Any) -> None:
    """addstr wrapper that swallows out-of-bounds errors."""
    try:
        win.addstr(*args)
    except curses.error:
        pass


def render_list(
    win: curses.window, lines: list[str], title: str = LIST_TITLE, attr: int = 0
) -> None:
    """Bordered, titled list filling the whole window."""
    max_y, max_x = win.getmaxyx()
    if max_y < 2 or max_x < 2:
        return
    win.attron(attr)
    try:
        win.box()
    finally:
        win.attroff(attr)
    inner_w = max_x - 2
    if inner_w > 0:
        _safe(win, 0, 1, title[:inner_w], attr)
    for row, line in enumerate(lines[: max_y - 2], start=1):
        _safe(win, row, 1, line[:inner_w], attr)


def render_modal(win: curses.window) -> None:
    """Plain overlay text at the top-left of the viewport."""
    _safe(win, 0, 0, MODAL_TEXT)


# ── Main loop ──────────────────────────────────────────────────────────────


def tick(session: Session, provider: Provider, state: UiState) -> bool:
    """Run one refresh, draw, poll and dispatch cycle.

    Returns:
        False once the user has asked to quit.
    """
    provider.refresh_all()
    lines = build_display_lines(provider.snapshot())
    attr = session.highlight_attr

    session.draw_frame(lambda win: render_list(win, lines, attr=attr))
    if state.is_modal_open:
        # Separate full-screen frame, not composited onto the list
        session.draw_frame(render_modal)

    event = session.poll_event(POLL_TIMEOUT_MS)
    return dispatch_key(state, event) is not Transition.QUIT


def run(provider: Provider, session: Session) -> UiState:
    """Drive the dashboard until ``q``; the session restores the terminal."""
    state = UiState()
    with session:
        session.clear()
        while tick(session, provider, state):
            pass
    log.debug("dashboard stopped")
    return state


# ── CLI entry point ────────────────────────────────────────────────────────


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Live terminal dashboard of memory, swap, OS and CPU details. "
        "Press ? for the overlay and q to quit.",
    )
    parser.parse_args()

    config = load_config()
    handler = None
    try:
        handler = open_log_sink(config["log_path"], log_level(config))
        if not is_supported_system():
            raise UnsupportedPlatformError("Not supported os")
        run(MetricsProvider(), TerminalSession())
    except SysdashError as e:
        print(f"sysdash: {e}", file=sys.stderr)
        raise SystemExit(e.exit_code) from e
    except (psutil.Error, OSError) as e:
        print(f"sysdash: cannot read metrics: {e}", file=sys.stderr)
        raise SystemExit(1) from e
    except KeyboardInterrupt:
        pass
    finally:
        if handler is not None:
            close_log_sink(handler)


if __name__ == "__main__":
    main()
