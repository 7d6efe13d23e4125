"""Shared test configuration and fixtures."""

from unittest.mock import MagicMock

import pytest
import requests

from dpad_browser.focus import FocusNavigator
from dpad_browser.pipeline import RetrievalPipeline
from dpad_browser.router import InputRouter
from dpad_browser.store import Bookmarks, MemoryStore, Preferences
from tests._helpers import FakeSurface, html_response, page


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def session():
    s = MagicMock(spec=requests.Session)
    s.get.side_effect = lambda url, timeout=None: html_response(page(url))
    return s


@pytest.fixture
def pipeline(store, session):
    return RetrievalPipeline(store, session=session)


@pytest.fixture
def surface():
    return FakeSurface()


@pytest.fixture
def notices():
    return []


@pytest.fixture
def router(pipeline, surface, store, notices):
    pipeline.subscribe(surface.paint)
    return InputRouter(
        pipeline,
        FocusNavigator(surface),
        surface,
        Bookmarks(store),
        Preferences(store),
        notify=lambda message, error=False: notices.append((message, error)),
    )
