"""Key routing across the four exclusive UI modes.

The router owns the one mode value. Every key event goes through handle(),
which applies the precedence rules in a fixed order and returns True when the
key was consumed. Unconsumed keys get the surface's default behavior through
default_action(). Soft-key labels are recomputed after every event.
"""

import enum
import logging
from collections import namedtuple
from dataclasses import dataclass, replace
from typing import Optional

from .errors import InvalidUrl
from .urls import normalize

logger = logging.getLogger(__name__)

VOLUME_SCROLL = 0.75

INVALID_URL_NOTICE = "Invalid URL format. Please enter a valid website address."


class Key(enum.Enum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    ENTER = "enter"
    BACKSPACE = "backspace"
    ESCAPE = "escape"
    SOFT_LEFT = "soft_left"
    SOFT_RIGHT = "soft_right"
    VOLUME_UP = "volume_up"
    VOLUME_DOWN = "volume_down"
    CHAR = "char"


@dataclass(frozen=True)
class KeyEvent:
    key: Key
    char: str = ""


# ========= MODES =========
@dataclass(frozen=True)
class Reading:
    selected: Optional[int] = None


@dataclass(frozen=True)
class UrlEntry:
    buffer: str = ""
    # the prefilled buffer is selected: typing replaces it
    select_all: bool = False


class MenuScreen(enum.Enum):
    MAIN = "main"
    BOOKMARKS = "bookmarks"
    CONFIRM_DELETE = "confirm_delete"
    CONFIRM_CLEAR_ALL = "confirm_clear_all"


@dataclass(frozen=True)
class Menu:
    screen: MenuScreen = MenuScreen.MAIN
    focus: int = 0
    target: Optional[int] = None


@dataclass(frozen=True)
class About:
    pass


OVERLAYS = (UrlEntry, Menu, About)

MenuItem = namedtuple("MenuItem", "label action arg", defaults=(None,))
SoftKeys = namedtuple("SoftKeys", "left center right")


# ========= MENU SCREENS =========
def menu_items(menu, bookmarks, prefs):
    if menu.screen is MenuScreen.MAIN:
        return [
            MenuItem("Go to Top", "top"),
            MenuItem("Refresh Page", "refresh"),
            MenuItem("Add Bookmark", "add-bookmark"),
            MenuItem("My Bookmarks", "view-bookmarks"),
            MenuItem(f"Text Size: {prefs.text_size.upper()}", "text-toggle"),
            MenuItem(f"Color Mode: {prefs.color_scheme.upper()}", "color-toggle"),
            MenuItem("About", "about"),
            MenuItem("Close Menu", "close"),
        ]

    if menu.screen is MenuScreen.BOOKMARKS:
        items = [MenuItem("<- Back to Main Menu", "main-menu")]
        if not bookmarks:
            items.append(MenuItem("No bookmarks saved.", "main-menu"))
            return items
        for i, b in enumerate(bookmarks):
            items.append(MenuItem(b["title"], "load-bookmark", b["url"]))
            items.append(MenuItem("[Delete Item]", "delete-bookmark", i))
        items.append(MenuItem("CLEAR ALL", "confirm-clear-all"))
        return items

    if menu.screen is MenuScreen.CONFIRM_DELETE:
        return [
            MenuItem("Yes, Delete", "confirm-delete-bookmark", menu.target),
            MenuItem("Cancel", "cancel-delete"),
        ]

    return [
        MenuItem("Yes, Delete All", "really-clear-all"),
        MenuItem("Cancel", "cancel-clear-all"),
    ]


def menu_prompt(menu, bookmarks):
    if menu.screen is MenuScreen.CONFIRM_DELETE:
        title = "Bookmark"
        if menu.target is not None and 0 <= menu.target < len(bookmarks):
            title = bookmarks[menu.target]["title"]
        return f'Delete "{title}"?'
    if menu.screen is MenuScreen.CONFIRM_CLEAR_ALL:
        return "Delete ALL bookmarks?"
    return ""


def softkey_labels(state, has_history):
    if isinstance(state, About):
        return SoftKeys("", "CLOSE", "")
    if isinstance(state, UrlEntry):
        return SoftKeys("Cancel", "GO", "")
    if isinstance(state, Menu):
        return SoftKeys("", "SELECT", "Close")
    if state.selected is not None:
        return SoftKeys("URL", "OPEN", "Menu")
    return SoftKeys("URL", "BACK" if has_history else "", "Menu")


# ========= ROUTER =========
class InputRouter:
    def __init__(self, pipeline, navigator, surface, bookmarks, prefs, notify=None, engine="duck_html"):
        self.pipeline = pipeline
        self.navigator = navigator
        self.surface = surface
        self.bookmarks = bookmarks
        self.prefs = prefs
        self.notify = notify or (lambda message, error=False: None)
        self.engine = engine
        self.state = Reading()
        self.close_requested = False
        self.softkeys = softkey_labels(self.state, False)
        pipeline.subscribe(self._on_publish)

    def _on_publish(self, tree):
        self.navigator.clear_selection()
        if isinstance(self.state, Reading):
            self.state = Reading()

    def _refresh_softkeys(self):
        self.softkeys = softkey_labels(self.state, bool(self.pipeline.history))

    def current_menu(self):
        """(prompt, items) for the open menu screen."""
        bookmarks = self.bookmarks.load()
        return menu_prompt(self.state, bookmarks), menu_items(self.state, bookmarks, self.prefs)

    # ----- key handling -----
    def handle(self, event):
        try:
            return self._dispatch(event)
        finally:
            self._refresh_softkeys()

    def _dispatch(self, event):
        key = event.key
        state = self.state

        if key in (Key.VOLUME_UP, Key.VOLUME_DOWN):
            if not isinstance(state, OVERLAYS):
                step = self.surface.viewport_height * VOLUME_SCROLL
                self.surface.scroll_by(int(-step if key is Key.VOLUME_UP else step))
            return True

        if isinstance(state, About):
            if key in (Key.BACKSPACE, Key.ENTER, Key.SOFT_RIGHT):
                self.state = Reading()
            return True

        if isinstance(state, UrlEntry) and key is Key.BACKSPACE:
            if not state.buffer:
                self.state = Reading()
                return True
            return False

        if isinstance(state, Reading) and key in (Key.UP, Key.DOWN):
            return self._move_link_selection(state, key)

        if isinstance(state, Menu) and key in (Key.UP, Key.DOWN):
            items = self.current_menu()[1]
            step = 1 if key is Key.DOWN else -1
            self.state = replace(state, focus=(state.focus + step) % len(items))
            return True

        if key is Key.SOFT_LEFT:
            if isinstance(state, Reading):
                self._open_url_entry()
            elif isinstance(state, UrlEntry):
                self.state = Reading()
            return True

        if key is Key.SOFT_RIGHT:
            if isinstance(state, Menu):
                self.state = Reading()
            elif isinstance(state, Reading):
                self._open_menu()
            return True

        if key is Key.ENTER:
            if isinstance(state, UrlEntry):
                self._submit_url(state)
            elif isinstance(state, Menu):
                items = self.current_menu()[1]
                self.menu_action(items[state.focus % len(items)])
            else:
                self._open_link(state)
            return True

        if key is Key.ESCAPE:
            if isinstance(state, Menu):
                self.state = Reading()
                return True
            if isinstance(state, Reading) and state.selected is not None:
                self.navigator.clear_selection()
                self.state = Reading()
                return True
            return False

        if key is Key.BACKSPACE:
            if isinstance(state, Menu):
                self.state = Reading()
            elif self.pipeline.history:
                self.pipeline.back()
            else:
                self.close_requested = True
            return True

        return False

    def default_action(self, event):
        """What the surface does with a key the router left alone."""
        try:
            state = self.state
            if isinstance(state, Reading):
                if event.key is Key.DOWN:
                    self.surface.scroll_by(1)
                elif event.key is Key.UP:
                    self.surface.scroll_by(-1)
            elif isinstance(state, UrlEntry):
                if event.key is Key.BACKSPACE:
                    buffer = "" if state.select_all else state.buffer[:-1]
                    self.state = UrlEntry(buffer)
                elif event.key is Key.CHAR:
                    buffer = event.char if state.select_all else state.buffer + event.char
                    self.state = UrlEntry(buffer)
        finally:
            self._refresh_softkeys()

    # ----- reading mode -----
    def _move_link_selection(self, state, key):
        links = self.navigator.ordered_links()
        if not links:
            return False

        down = key is Key.DOWN
        if state.selected is None:
            index = self.navigator.nearest_to("down" if down else "up", links=links)
            if index is None:
                index = 0 if down else len(links) - 1
        else:
            index = state.selected + (1 if down else -1)
        self.state = Reading(self.navigator.select_index(index))
        return True

    def _open_link(self, state):
        if not isinstance(state, Reading) or state.selected is None:
            return
        links = self.navigator.ordered_links()
        if 0 <= state.selected < len(links) and links[state.selected].href:
            self.pipeline.load(links[state.selected].href)

    # ----- url entry -----
    def _open_url_entry(self):
        self.navigator.clear_selection()
        self.state = UrlEntry(self.pipeline.location, select_all=bool(self.pipeline.location))

    def _submit_url(self, state):
        text = state.buffer.strip()
        if not text:
            return
        try:
            url = normalize(text, self.engine)
        except InvalidUrl as e:
            logger.info("rejected url input: %s", e)
            self.notify(INVALID_URL_NOTICE, error=True)
            return
        self.state = Reading()
        self.pipeline.load(url)

    # ----- menu -----
    def _open_menu(self):
        self.navigator.clear_selection()
        self.state = Menu()

    def _close_menu(self):
        self.state = Reading()

    def _show_bookmarks(self):
        self.state = Menu(MenuScreen.BOOKMARKS)

    def menu_action(self, item):
        action = item.action

        if action == "top":
            self.surface.scroll_top = 0
            self._close_menu()
        elif action == "refresh":
            self.pipeline.refresh()
            self._close_menu()
        elif action == "add-bookmark":
            self._add_bookmark()
            self._close_menu()
        elif action in ("view-bookmarks", "cancel-delete", "cancel-clear-all"):
            self._show_bookmarks()
        elif action == "main-menu":
            self.state = Menu()
        elif action == "load-bookmark":
            self.pipeline.load(item.arg)
            self._close_menu()
        elif action == "delete-bookmark":
            self.state = Menu(MenuScreen.CONFIRM_DELETE, target=item.arg)
        elif action == "confirm-delete-bookmark":
            if self.bookmarks.delete(item.arg):
                self.notify("Bookmark deleted")
            else:
                self.notify("Failed to delete bookmark", error=True)
            self._show_bookmarks()
        elif action == "confirm-clear-all":
            self.state = Menu(MenuScreen.CONFIRM_CLEAR_ALL)
        elif action == "really-clear-all":
            if self.bookmarks.clear():
                self.notify("All bookmarks deleted")
            else:
                self.notify("Failed to clear bookmarks", error=True)
            self._show_bookmarks()
        elif action == "text-toggle":
            self.prefs.cycle_text_size()
            self.surface.apply_preferences(self.prefs.text_size, self.prefs.color_scheme)
        elif action == "color-toggle":
            self.prefs.cycle_color_scheme()
            self.surface.apply_preferences(self.prefs.text_size, self.prefs.color_scheme)
        elif action == "about":
            self.state = About()
        elif action == "close":
            self._close_menu()
        else:
            logger.warning("unknown menu action %r", action)

    def _add_bookmark(self):
        location = self.pipeline.location
        if not location:
            self.notify("Cannot bookmark the default homepage", error=True)
            return
        tree = self.pipeline.tree
        title = tree.heading if tree is not None else ""
        if self.bookmarks.add(title, location):
            self.notify("Bookmark saved!")
        else:
            self.notify("Storage full - bookmark may not save", error=True)
