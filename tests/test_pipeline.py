"""Tests for dpad_browser.pipeline: loading, history and failure handling."""

from unittest.mock import MagicMock
from urllib.parse import quote

import pytest
import requests

from dpad_browser.errors import LoadFailed, UnsupportedContentType
from dpad_browser.pipeline import (
    LAST_URL_KEY,
    LOAD_ERROR,
    UNSUPPORTED_NOTICE,
    LoadOutcome,
    RetrievalPipeline,
    fetch,
    is_renderable,
)
from tests._helpers import html_response, page


class TestFetch:
    def test_returns_text(self):
        session = MagicMock()
        session.get.return_value = html_response("<p>x</p>")
        assert fetch(session, "https://a.example/", 15) == "<p>x</p>"
        session.get.assert_called_once_with("https://a.example/", timeout=15)

    @pytest.mark.parametrize("status", [301, 404, 500, 199])
    def test_non_2xx_fails(self, status):
        session = MagicMock()
        session.get.return_value = html_response(status=status)
        with pytest.raises(LoadFailed):
            fetch(session, "https://a.example/", 15)

    @pytest.mark.parametrize("exc", [requests.Timeout, requests.ConnectionError, requests.TooManyRedirects])
    def test_transport_errors_fail(self, exc):
        session = MagicMock()
        session.get.side_effect = exc("boom")
        with pytest.raises(LoadFailed):
            fetch(session, "https://a.example/", 15)

    def test_binary_content_rejected(self):
        session = MagicMock()
        session.get.return_value = html_response(content_type="application/pdf")
        with pytest.raises(UnsupportedContentType):
            fetch(session, "https://a.example/x.pdf", 15)


class TestIsRenderable:
    @pytest.mark.parametrize("ct", [None, "", "text/html", "TEXT/PLAIN", "application/xhtml+xml", "text/csv"])
    def test_renderable(self, ct):
        assert is_renderable(ct)

    @pytest.mark.parametrize("ct", ["image/png", "application/json", "application/pdf"])
    def test_not_renderable(self, ct):
        assert not is_renderable(ct)


class TestLoad:
    def test_successful_load(self, pipeline, store):
        trees = []
        pipeline.subscribe(trees.append)
        assert pipeline.load("https://a.example/") is LoadOutcome.LOADED
        assert pipeline.location == "https://a.example/"
        assert store.get(LAST_URL_KEY) == "https://a.example/"
        assert trees == [pipeline.tree]
        assert pipeline.tree.fragment.find("a")["href"] == "https://a.example/next"
        assert pipeline.session.get.call_args.kwargs["timeout"] == 15

    def test_forward_navigation_pushes_history(self, pipeline):
        pipeline.load("https://a.example/")
        pipeline.load("https://b.example/")
        assert list(pipeline.history) == ["https://a.example/"]

    def test_first_load_does_not_push_empty_location(self, pipeline):
        pipeline.load("https://a.example/")
        assert list(pipeline.history) == []

    def test_reload_same_location_does_not_push(self, pipeline):
        pipeline.load("https://a.example/")
        pipeline.load("https://a.example/")
        assert list(pipeline.history) == []

    def test_history_capped_at_fifty(self, pipeline):
        for i in range(52):
            pipeline.load(f"https://a.example/{i}")
        assert len(pipeline.history) == 50
        assert pipeline.history[0] == "https://a.example/1"
        assert pipeline.history[-1] == "https://a.example/50"

    def test_redirector_unwrapped_before_fetch(self, pipeline):
        wrapped = "https://duckduckgo.com/l/?uddg=" + quote("https://real.example/", safe="")
        pipeline.load(wrapped)
        pipeline.session.get.assert_called_once_with("https://real.example/", timeout=15)
        assert pipeline.location == "https://real.example/"

    @pytest.mark.parametrize("url", ["", None, 42])
    def test_invalid_input(self, pipeline, url):
        assert pipeline.load(url) is LoadOutcome.INVALID
        assert pipeline.session.get.call_count == 0
        assert pipeline.busy is False

    def test_failure_shows_error_and_keeps_location(self, pipeline, store):
        pipeline.load("https://a.example/")
        pipeline.session.get.side_effect = requests.Timeout("slow")
        assert pipeline.load("https://b.example/") is LoadOutcome.FAILED
        assert pipeline.location == "https://a.example/"
        assert store.get(LAST_URL_KEY) == "https://a.example/"
        assert LOAD_ERROR in pipeline.tree.fragment.get_text()
        assert "slow" not in pipeline.tree.fragment.get_text()
        assert list(pipeline.history) == ["https://a.example/"]
        assert pipeline.busy is False

    def test_unsupported_type_is_only_a_notice(self, store, session):
        notices = []
        pipeline = RetrievalPipeline(store, session=session, notify=lambda m, error=False: notices.append(m))
        pipeline.load("https://a.example/")
        tree = pipeline.tree
        session.get.side_effect = lambda url, timeout=None: html_response(content_type="image/png")
        assert pipeline.load("https://a.example/cat.png") is LoadOutcome.UNSUPPORTED
        assert notices == [UNSUPPORTED_NOTICE]
        assert pipeline.tree is tree
        assert pipeline.location == "https://a.example/"
        assert list(pipeline.history) == []

    def test_busy_drops_nested_load(self, pipeline):
        outcomes = []

        def reenter(tree):
            outcomes.append(pipeline.load("https://other.example/"))

        pipeline.subscribe(reenter)
        assert pipeline.load("https://a.example/") is LoadOutcome.LOADED
        assert outcomes == [LoadOutcome.IGNORED]
        assert pipeline.session.get.call_count == 1
        assert pipeline.busy is False

    def test_busy_cleared_after_unexpected_error(self, pipeline):
        pipeline.session.get.side_effect = RuntimeError("bug")
        with pytest.raises(RuntimeError):
            pipeline.load("https://a.example/")
        assert pipeline.busy is False


class TestBackAndRefresh:
    def test_back_returns_to_previous(self, pipeline):
        pipeline.load("https://a.example/")
        pipeline.load("https://b.example/")
        assert pipeline.back() is LoadOutcome.LOADED
        assert pipeline.location == "https://a.example/"
        assert list(pipeline.history) == []

    def test_back_with_empty_history(self, pipeline):
        assert pipeline.back() is LoadOutcome.IGNORED

    def test_refresh_reloads_without_history(self, pipeline):
        pipeline.load("https://a.example/")
        pipeline.refresh()
        assert pipeline.session.get.call_count == 2
        assert list(pipeline.history) == []

    def test_refresh_on_welcome_page(self, pipeline):
        pipeline.refresh()
        assert pipeline.location == ""
        assert pipeline.tree.heading == "dpad browser"
        assert pipeline.session.get.call_count == 0


class TestRestore:
    def test_restores_last_url(self, pipeline, store):
        store.set(LAST_URL_KEY, "https://saved.example/")
        pipeline.restore()
        assert pipeline.location == "https://saved.example/"

    def test_welcome_without_saved_url(self, pipeline):
        pipeline.restore()
        assert pipeline.location == ""
        assert "F1" in pipeline.tree.fragment.get_text()


def test_page_titles_come_from_markup(pipeline):
    pipeline.session.get.side_effect = lambda url, timeout=None: html_response(page(url, heading="Hello"))
    pipeline.load("https://a.example/")
    assert pipeline.tree.page_title == "Hello"
