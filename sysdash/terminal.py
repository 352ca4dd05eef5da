"""Terminal session: alternate screen, raw mode and key polling via curses.

``TerminalSession`` owns the terminal for the lifetime of the dashboard.
Use it as a context manager so the terminal is restored on every exit path:

    with TerminalSession() as term:
        term.draw_frame(lambda win: win.addstr(0, 0, "hello"))
        event = term.poll_event(16)
"""

from __future__ import annotations

import curses
import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass
from types import TracebackType

from sysdash.errors import TerminalIOError

log = logging.getLogger(__name__)

# Curses colour-pair IDs
C_HIGHLIGHT = 1


class KeyKind(enum.Enum):
    PRESS = "press"
    REPEAT = "repeat"
    RELEASE = "release"


@dataclass(frozen=True, slots=True)
class KeyEvent:
    """A single key event.

    ``code`` is the character for printable keys and the curses key name
    (``KEY_RESIZE``, ``KEY_UP``, ...) for everything else.
    """

    code: str
    kind: KeyKind = KeyKind.PRESS


RenderFn = Callable[["curses.window"], None]


def _key_code(ch: int) -> str:
    if 0 <= ch < 256:
        return chr(ch)
    try:
        return curses.keyname(ch).decode("ascii", errors="replace")
    except ValueError:
        return f"KEY_{ch}"


class TerminalSession:
    """Scoped owner of the curses screen."""

    def __init__(self) -> None:
        self._stdscr: curses.window | None = None
        self._active = False
        self.highlight_attr = 0

    @property
    def active(self) -> bool:
        return self._active

    @property
    def window(self) -> curses.window:
        if self._stdscr is None or not self._active:
            raise TerminalIOError("terminal session is not active")
        return self._stdscr

    # ── Lifecycle ──────────────────────────────────────────────────────────

    def enter(self) -> None:
        """Switch to the alternate screen and put the terminal in raw mode."""
        try:
            # initscr emits smcup, which selects the alternate screen buffer
            self._stdscr = curses.initscr()
        except curses.error as e:
            raise TerminalIOError(f"cannot initialise terminal: {e}") from e
        self._active = True
        try:
            curses.noecho()
            curses.raw()
            self._stdscr.keypad(True)
            self._init_colors()
        except curses.error as e:
            self.leave()
            raise TerminalIOError(f"cannot enter raw mode: {e}") from e
        try:
            curses.curs_set(0)
        except curses.error:
            log.debug("terminal cannot hide the cursor")

    def leave(self) -> None:
        """Restore cooked mode and the main screen. Safe to call repeatedly."""
        if not self._active:
            return
        self._active = False
        try:
            if self._stdscr is not None:
                self._stdscr.keypad(False)
            curses.noraw()
            curses.echo()
            curses.endwin()
        except curses.error as e:
            raise TerminalIOError(f"cannot restore terminal: {e}") from e
        finally:
            self._stdscr = None

    def __enter__(self) -> TerminalSession:
        self.enter()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.leave()

    def _init_colors(self) -> None:
        if not curses.has_colors():
            self.highlight_attr = curses.A_BOLD
            return
        curses.start_color()
        try:
            curses.use_default_colors()
            background = -1
        except curses.error:
            background = curses.COLOR_BLACK
        curses.init_pair(C_HIGHLIGHT, curses.COLOR_YELLOW, background)
        self.highlight_attr = curses.color_pair(C_HIGHLIGHT)

    # ── Drawing and input ──────────────────────────────────────────────────

    def clear(self) -> None:
        win = self.window
        try:
            win.clear()
            win.refresh()
        except curses.error as e:
            raise TerminalIOError(f"cannot clear screen: {e}") from e

    def draw_frame(self, render: RenderFn) -> None:
        """Draw one complete frame: erase, let *render* paint, flush."""
        win = self.window
        try:
            win.erase()
            render(win)
            win.refresh()
        except curses.error as e:
            raise TerminalIOError(f"cannot draw frame: {e}") from e

    def poll_event(self, timeout_ms: int) -> KeyEvent | None:
        """Wait up to *timeout_ms* for a key; ``None`` if nothing arrived."""
        win = self.window
        try:
            win.timeout(timeout_ms)
            ch = win.getch()
        except curses.error as e:
            raise TerminalIOError(f"cannot read input: {e}") from e
        if ch == -1:
            return None
        # curses only reports key presses
        return KeyEvent(_key_code(ch), KeyKind.PRESS)
