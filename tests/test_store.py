"""Tests for dpad_browser.store: key-value stores, bookmarks and preferences."""

import json

import pytest

from dpad_browser.store import (
    Bookmarks,
    JsonFileStore,
    MemoryStore,
    Preferences,
    bookmark_title,
)


class TestMemoryStore:
    def test_default_for_missing_and_empty(self):
        store = MemoryStore({"empty": ""})
        assert store.get("missing", "d") == "d"
        assert store.get("empty", "d") == "d"

    def test_set_and_get(self):
        store = MemoryStore()
        assert store.set("k", "v") is True
        assert store.get("k") == "v"


class TestJsonFileStore:
    def test_persists_between_instances(self, tmp_path):
        path = str(tmp_path / "store.json")
        JsonFileStore(path).set("k", "v")
        assert JsonFileStore(path).get("k") == "v"

    def test_corrupt_file_starts_empty(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text("{not json")
        assert JsonFileStore(str(path)).get("k", "d") == "d"

    def test_non_string_values_dropped(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text(json.dumps({"a": "x", "b": 3, "c": ["y"]}))
        store = JsonFileStore(str(path))
        assert store.data == {"a": "x"}

    def test_write_failure_returns_false(self, tmp_path):
        store = JsonFileStore(str(tmp_path / "missing-dir" / "store.json"))
        assert store.set("k", "v") is False
        assert store.get("k") == "v"


class TestBookmarkTitle:
    @pytest.mark.parametrize("text", [None, "", "   \n "])
    def test_untitled(self, text):
        assert bookmark_title(text) == "Untitled Page"

    def test_truncated_to_twenty(self):
        assert bookmark_title("A very long page heading indeed") == "A very long page hea"

    def test_whitespace_collapsed(self):
        assert bookmark_title("  Hello \n  World ") == "Hello World"


class TestBookmarks:
    def test_empty_by_default(self, store):
        assert Bookmarks(store).load() == []

    def test_add_appends_in_order(self, store):
        bookmarks = Bookmarks(store)
        bookmarks.add("One", "https://1.example/")
        bookmarks.add("One", "https://1.example/")
        bookmarks.add("Two", "https://2.example/")
        assert [b["title"] for b in bookmarks.load()] == ["One", "One", "Two"]

    def test_corrupt_json_reset(self, store):
        store.set(Bookmarks.KEY, "[{broken")
        assert Bookmarks(store).load() == []
        assert store.get(Bookmarks.KEY) == "[]"

    def test_malformed_entries_skipped(self, store):
        store.set(Bookmarks.KEY, json.dumps([{"title": "x"}, "junk", {"url": "https://u.example/"}]))
        assert Bookmarks(store).load() == [{"title": "https://u.example/", "url": "https://u.example/"}]

    def test_delete(self, store):
        bookmarks = Bookmarks(store)
        bookmarks.add("One", "https://1.example/")
        bookmarks.add("Two", "https://2.example/")
        assert bookmarks.delete(0) is True
        assert bookmarks.load() == [{"title": "Two", "url": "https://2.example/"}]

    @pytest.mark.parametrize("index", [-1, 1, 5])
    def test_delete_out_of_range(self, store, index):
        bookmarks = Bookmarks(store)
        bookmarks.add("One", "https://1.example/")
        assert bookmarks.delete(index) is False
        assert len(bookmarks.load()) == 1

    def test_clear(self, store):
        bookmarks = Bookmarks(store)
        bookmarks.add("One", "https://1.example/")
        assert bookmarks.clear() is True
        assert bookmarks.load() == []


class TestPreferences:
    def test_defaults(self, store):
        prefs = Preferences(store)
        assert (prefs.text_size, prefs.color_scheme) == ("medium", "light")

    def test_unknown_stored_values_fall_back(self):
        prefs = Preferences(MemoryStore({"userTextSize": "huge", "colorMode": "neon"}))
        assert (prefs.text_size, prefs.color_scheme) == ("medium", "light")

    def test_text_size_wraps(self, store):
        prefs = Preferences(store)
        sizes = [prefs.cycle_text_size() for _ in range(5)]
        assert sizes == ["large", "xlarge", "xsmall", "small", "medium"]

    def test_color_scheme_wraps_and_persists(self, store):
        prefs = Preferences(store)
        schemes = [prefs.cycle_color_scheme() for _ in range(5)]
        assert schemes == ["dark", "sepia", "darkblue", "terminal", "light"]
        prefs.cycle_color_scheme()
        assert Preferences(store).color_scheme == "dark"
