"""Browser exception hierarchy.

Everything derives from BrowserError so the front end can catch the base
class. None of these end the process.
"""


class BrowserError(Exception):
    """Base exception for all browser errors."""


class InvalidUrl(BrowserError):
    """User input or link target is malformed or uses a disallowed scheme."""


class LoadFailed(BrowserError):
    """Timeout, transport error or non-2xx status while fetching a page."""


class UnsupportedContentType(BrowserError):
    """The response is neither HTML nor text."""

    def __init__(self, content_type):
        super().__init__(f"unsupported content type: {content_type}")
        self.content_type = content_type


class StorageUnavailable(BrowserError):
    """The persistent store could not be written."""
