#!/usr/bin/env python3
import os
import sys
import shutil
import select
import logging
import argparse
import termios
import tty

from . import __version__
from . import logging_config
from .config import load_config
from .errors import InvalidUrl
from .focus import FocusNavigator
from .pipeline import LAST_URL_KEY, RetrievalPipeline, make_session
from .router import About, InputRouter, Key, KeyEvent, Menu, UrlEntry
from .store import Bookmarks, JsonFileStore, Preferences
from .surface import C_RESET, TerminalSurface
from .urls import normalize

logger = logging.getLogger(__name__)

ABOUT_TEXT = [
    f"dpad browser {__version__}",
    "",
    "A text web reader for keypad navigation.",
    "",
    "F1 / left soft-key    URL bar",
    "F2 / right soft-key   menu",
    "Up / Down             select links",
    "Enter                 open",
    "PageUp / PageDown     scroll",
    "Backspace             back",
]

# header, notice line, soft-key bar
CHROME_ROWS = 3

# ========= KEYS =========
ESCAPE_SEQUENCES = {
    "\x1b[A": Key.UP,
    "\x1b[B": Key.DOWN,
    "\x1b[C": Key.RIGHT,
    "\x1b[D": Key.LEFT,
    "\x1bOA": Key.UP,
    "\x1bOB": Key.DOWN,
    "\x1bOC": Key.RIGHT,
    "\x1bOD": Key.LEFT,
    "\x1bOP": Key.SOFT_LEFT,
    "\x1bOQ": Key.SOFT_RIGHT,
    "\x1b[11~": Key.SOFT_LEFT,
    "\x1b[12~": Key.SOFT_RIGHT,
    "\x1b[[A": Key.SOFT_LEFT,
    "\x1b[[B": Key.SOFT_RIGHT,
    "\x1b[5~": Key.VOLUME_UP,
    "\x1b[6~": Key.VOLUME_DOWN,
}


def parse_keys(chunk):
    """Turn one raw terminal read into key events."""
    if chunk in ESCAPE_SEQUENCES:
        return [KeyEvent(ESCAPE_SEQUENCES[chunk])]
    if chunk == "\x1b":
        return [KeyEvent(Key.ESCAPE)]
    if chunk.startswith("\x1b"):
        # unknown sequence
        return []

    events = []
    for ch in chunk:
        if ch in ("\r", "\n"):
            events.append(KeyEvent(Key.ENTER))
        elif ch in ("\x7f", "\x08"):
            events.append(KeyEvent(Key.BACKSPACE))
        elif ch == "\x03":
            raise KeyboardInterrupt
        elif ch.isprintable():
            events.append(KeyEvent(Key.CHAR, ch))
    return events


def read_keys():
    fd = sys.stdin.fileno()
    old = termios.tcgetattr(fd)
    try:
        tty.setraw(fd)
        chunk = os.read(fd, 64)
        # a lone ESC may be the start of a sequence still in flight
        if chunk == b"\x1b" and select.select([fd], [], [], 0.05)[0]:
            chunk += os.read(fd, 64)
        return parse_keys(chunk.decode("utf-8", errors="ignore"))
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, old)


# ========= UI HELPERS =========
def clear_screen():
    os.system("clear")


def shorten_middle(text, max_len):
    if len(text) <= max_len:
        return text
    if max_len < 10:
        return text[:max_len]
    keep = (max_len - 3) // 2
    return text[:keep] + "..." + text[-keep:]


def softkey_bar(softkeys, width):
    left, center, right = softkeys
    side = max(0, (width - len(center)) // 2)
    line = left.ljust(side) + center
    return line + right.rjust(max(0, width - len(line)))


class Screen:
    """Draws the surface plus whichever overlay the router state asks for."""

    def __init__(self, surface, router, pipeline):
        self.surface = surface
        self.router = router
        self.pipeline = pipeline
        self.notices = []

    def notify(self, message, error=False):
        self.notices.append((message, error))

    def fit(self):
        cols, rows = shutil.get_terminal_size()
        self.surface.resize(cols, rows - CHROME_ROWS)
        return cols

    def loading(self, url):
        pal = self.surface.palette
        print(f"\n{pal['dim']}Loading {shorten_middle(url, 60)}...{C_RESET}", flush=True)

    def _menu_rows(self, height):
        pal = self.surface.palette
        state = self.router.state
        prompt, items = self.router.current_menu()
        rows = [f"{pal['title']}=== MENU ==={C_RESET}"]
        if prompt:
            rows.append(f"{pal['dim']}{prompt}{C_RESET}")
        room = max(1, height - len(rows))
        focus = state.focus % len(items)
        first = min(max(0, focus - room + 1), max(0, len(items) - room))
        for i, item in enumerate(items[first:first + room], first):
            if i == focus:
                rows.append(f"{pal['selected']}> {item.label}{C_RESET}")
            else:
                rows.append(f"  {item.label}")
        return rows

    def draw(self):
        cols = self.fit()
        pal = self.surface.palette
        state = self.router.state
        height = self.surface.viewport_height

        clear_screen()

        tree = self.pipeline.tree
        title = (tree.page_title if tree else "") or self.pipeline.location or "dpad browser"
        print(f"{pal['bar']}{shorten_middle(title, cols).ljust(cols)}{C_RESET}")

        if isinstance(state, About):
            body = [f"{pal['text']}{line}{C_RESET}" for line in ABOUT_TEXT]
        elif isinstance(state, Menu):
            body = self._menu_rows(height)
        else:
            body = self.surface.render(self.router.navigator.selected_node)
            if isinstance(state, UrlEntry):
                buffer = state.buffer
                shown = f"{pal['selected']}{buffer}{C_RESET}" if state.select_all else buffer
                body = [f"{pal['title']}URL> {C_RESET}{shown}", ""] + body[:-2]

        body = (body + [""] * height)[:height]
        for row in body:
            print(row)

        if self.notices:
            message, error = self.notices[-1]
            style = pal["err"] if error else pal["dim"]
            print(f"{style}{shorten_middle(message, cols)}{C_RESET}")
            self.notices.clear()
        else:
            print()

        print(f"{pal['bar']}{softkey_bar(self.router.softkeys, cols)}{C_RESET}", end="", flush=True)


# ========= MAIN LOOP =========
def setup_logging(args, cfg):
    # stderr is the screen once the UI starts
    log_file = args.log_file or cfg["LOG_FILE"]
    logging_config.configure(level=args.log_level, log_file=log_file)
    return log_file


def build_parser():
    parser = argparse.ArgumentParser(prog="dpad-browser", description="Keypad-driven text web reader.")
    parser.add_argument("url", nargs="?", help="page or search terms to open")
    parser.add_argument("--config", help="config file (default ~/.dpad_browser_config.json)")
    parser.add_argument("--log-level", default="WARNING")
    parser.add_argument("--log-file", help="log file (default ~/.dpad_browser.log)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    cfg = load_config(args.config)
    setup_logging(args, cfg)

    store = JsonFileStore(cfg["STORE_FILE"])
    prefs = Preferences(store)
    bookmarks = Bookmarks(store)

    surface = TerminalSurface()
    surface.apply_preferences(prefs.text_size, prefs.color_scheme)

    pipeline = RetrievalPipeline(
        store,
        session=make_session(cfg["USER_AGENT"]),
        timeout=cfg["REQUEST_TIMEOUT"],
        max_history=cfg["MAX_HISTORY"],
    )
    pipeline.subscribe(surface.paint)
    navigator = FocusNavigator(surface)
    router = InputRouter(pipeline, navigator, surface, bookmarks, prefs, engine=cfg["DEFAULT_ENGINE"])

    screen = Screen(surface, router, pipeline)
    pipeline.notify = screen.notify
    router.notify = screen.notify
    pipeline.on_loading = screen.loading
    screen.fit()

    if args.url:
        try:
            pipeline.load(normalize(args.url, cfg["DEFAULT_ENGINE"]))
        except InvalidUrl:
            screen.notify("Invalid URL format. Please enter a valid website address.", error=True)
            pipeline.show_welcome()
    else:
        pipeline.restore()

    try:
        while not router.close_requested:
            screen.draw()
            for event in read_keys():
                if not router.handle(event):
                    router.default_action(event)
                if router.close_requested:
                    break
    except KeyboardInterrupt:
        pass
    finally:
        store.set(LAST_URL_KEY, pipeline.location)
        print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
