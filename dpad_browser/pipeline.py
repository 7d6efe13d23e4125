import enum
import logging
from collections import deque

import requests
from bs4.builder import ParserRejectedMarkup

from .config import DEFAULT_CONFIG
from .errors import LoadFailed, UnsupportedContentType
from .sanitizer import ContentTree, sanitize
from .urls import unwrap_redirector

logger = logging.getLogger(__name__)

LAST_URL_KEY = "lastVisitedUrl"

LOAD_ERROR = "Failed to load page. Site may be blocking access or you may be offline."
UNSUPPORTED_NOTICE = "This content type cannot be rendered in-app."
NO_CONTENT = "No readable content found on this page."


class LoadOutcome(enum.Enum):
    LOADED = "loaded"
    IGNORED = "ignored"
    INVALID = "invalid"
    FAILED = "failed"
    UNSUPPORTED = "unsupported"


def welcome_page():
    return ContentTree.message(
        "Text Browser",
        "Press F1 (left soft-key) to enter a URL or search the web.",
        "Navigate links with the arrow keys. Scroll with PageUp/PageDown. "
        "Press F2 (right soft-key) for the menu.",
        title="dpad browser",
    )


def error_page(message):
    return ContentTree.message(message, "Press BACK to go back", title="Error")


# ========= HTTP SESSION =========
def make_session(user_agent=DEFAULT_CONFIG["USER_AGENT"]):
    session = requests.Session()
    session.headers.update({"User-Agent": user_agent})
    return session


def is_renderable(content_type):
    if not content_type:
        return True
    ct = content_type.lower()
    return "html" in ct or ct.startswith("text/")


def fetch(session, url, timeout):
    """GET url and return its text, collapsing every failure into LoadFailed."""
    try:
        r = session.get(url, timeout=timeout)
    except requests.RequestException as e:
        raise LoadFailed(str(e)) from e
    if not 200 <= r.status_code < 300:
        raise LoadFailed(f"HTTP {r.status_code}")

    content_type = r.headers.get("Content-Type")
    if not is_renderable(content_type):
        raise UnsupportedContentType(content_type)
    return r.text


# ========= PIPELINE =========
class RetrievalPipeline:
    """Owns the location, the back history and the live content tree.

    Subscribers registered with subscribe() receive every published tree,
    error and welcome pages included.
    """

    def __init__(self, store, session=None, timeout=DEFAULT_CONFIG["REQUEST_TIMEOUT"],
                 max_history=DEFAULT_CONFIG["MAX_HISTORY"], notify=None):
        self.store = store
        self.session = session or make_session()
        self.timeout = timeout
        self.history = deque(maxlen=max_history)
        self.location = ""
        self.tree = None
        self.busy = False
        self.notify = notify or (lambda message, error=False: None)
        self.on_loading = None
        self._subscribers = []

    def subscribe(self, callback):
        self._subscribers.append(callback)

    def publish(self, tree):
        self.tree = tree
        for callback in self._subscribers:
            callback(tree)

    def show_welcome(self):
        self.publish(welcome_page())
        self.location = ""

    def restore(self):
        last = self.store.get(LAST_URL_KEY, "")
        if last:
            return self.load(last)
        self.show_welcome()
        return LoadOutcome.LOADED

    def load(self, url, is_back=False):
        if self.busy:
            logger.debug("load of %s dropped, another load is in flight", url)
            return LoadOutcome.IGNORED
        self.busy = True
        try:
            return self._load(url, is_back)
        finally:
            self.busy = False

    def _load(self, url, is_back):
        if not url or not isinstance(url, str):
            self.publish(error_page("Invalid URL"))
            return LoadOutcome.INVALID

        # the location being left is only recorded once the view changes
        leaving = self.location if not is_back and self.location and self.location != url else None

        url = unwrap_redirector(url)
        if self.on_loading:
            self.on_loading(url)

        try:
            html = fetch(self.session, url, self.timeout)
        except UnsupportedContentType as e:
            logger.info("not rendering %s: %s", url, e)
            self.notify(UNSUPPORTED_NOTICE, error=True)
            return LoadOutcome.UNSUPPORTED
        except LoadFailed as e:
            logger.warning("load failed for %s: %s", url, e)
            self._push(leaving)
            self.publish(error_page(LOAD_ERROR))
            return LoadOutcome.FAILED

        try:
            tree = sanitize(html, url)
        except ParserRejectedMarkup as e:
            logger.warning("no usable content in %s: %s", url, e)
            tree = error_page(NO_CONTENT)
        self._push(leaving)
        self.publish(tree)
        self.location = url
        self.store.set(LAST_URL_KEY, url)
        return LoadOutcome.LOADED

    def _push(self, location):
        if location:
            self.history.append(location)

    def back(self):
        if self.busy or not self.history:
            return LoadOutcome.IGNORED
        return self.load(self.history.pop(), is_back=True)

    def refresh(self):
        if not self.location:
            self.show_welcome()
            return LoadOutcome.LOADED
        return self.load(self.location)
