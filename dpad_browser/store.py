import os
import json
import logging

from .errors import StorageUnavailable
from .sanitizer import clean_paragraph

logger = logging.getLogger(__name__)

TEXT_SIZES = ["xsmall", "small", "medium", "large", "xlarge"]
COLOR_SCHEMES = ["light", "dark", "sepia", "darkblue", "terminal"]

BOOKMARK_TITLE_MAX = 20


# ========= KEY-VALUE STORES =========
class MemoryStore:
    """Store that never persists. Also the fallback when no file is usable."""

    def __init__(self, data=None):
        self.data = dict(data or {})

    def get(self, key, default=""):
        value = self.data.get(key)
        return value if value else default

    def set(self, key, value):
        self.data[key] = value
        return True


class JsonFileStore(MemoryStore):
    """String key-value store kept in one JSON file.

    Values live in memory first; a failed write leaves the memory copy
    updated and makes set() return False.
    """

    def __init__(self, path):
        super().__init__(self._read(path))
        self.path = path

    @staticmethod
    def _read(path):
        if not os.path.exists(path):
            return {}
        try:
            with open(path) as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error("store read failed for %s: %s", path, e)
            return {}
        if not isinstance(data, dict):
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _flush(self):
        try:
            with open(self.path, "w") as f:
                json.dump(self.data, f, indent=2)
        except OSError as e:
            raise StorageUnavailable(str(e)) from e

    def set(self, key, value):
        super().set(key, value)
        try:
            self._flush()
        except StorageUnavailable as e:
            logger.error("store write failed for %s: %s", key, e)
            return False
        return True


# ========= BOOKMARKS =========
def bookmark_title(text):
    title = clean_paragraph(text or "")
    if not title:
        return "Untitled Page"
    return title[:BOOKMARK_TITLE_MAX]


class Bookmarks:
    KEY = "bookmarks"

    def __init__(self, store):
        self.store = store

    def load(self):
        raw = self.store.get(self.KEY, "[]")
        try:
            items = json.loads(raw)
        except ValueError as e:
            logger.error("bookmarks parsing error: %s", e)
            self.store.set(self.KEY, "[]")
            return []
        if not isinstance(items, list):
            return []

        bookmarks = []
        for item in items:
            if isinstance(item, dict) and item.get("url"):
                bookmarks.append({"title": str(item.get("title") or item["url"]), "url": str(item["url"])})
        return bookmarks

    def save(self, bookmarks):
        return self.store.set(self.KEY, json.dumps(bookmarks))

    def add(self, title, url):
        bookmarks = self.load()
        bookmarks.append({"title": bookmark_title(title), "url": url})
        return self.save(bookmarks)

    def delete(self, index):
        bookmarks = self.load()
        if 0 <= index < len(bookmarks):
            del bookmarks[index]
            return self.save(bookmarks)
        return False

    def clear(self):
        return self.save([])


# ========= PREFERENCES =========
def _cycle(options, current):
    if current not in options:
        return options[0]
    return options[(options.index(current) + 1) % len(options)]


class Preferences:
    SIZE_KEY = "userTextSize"
    COLOR_KEY = "colorMode"

    def __init__(self, store):
        self.store = store
        self.text_size = store.get(self.SIZE_KEY, "medium")
        if self.text_size not in TEXT_SIZES:
            self.text_size = "medium"
        self.color_scheme = store.get(self.COLOR_KEY, "light")
        if self.color_scheme not in COLOR_SCHEMES:
            self.color_scheme = "light"

    def cycle_text_size(self):
        self.text_size = _cycle(TEXT_SIZES, self.text_size)
        self.store.set(self.SIZE_KEY, self.text_size)
        return self.text_size

    def cycle_color_scheme(self):
        self.color_scheme = _cycle(COLOR_SCHEMES, self.color_scheme)
        self.store.set(self.COLOR_KEY, self.color_scheme)
        return self.color_scheme
