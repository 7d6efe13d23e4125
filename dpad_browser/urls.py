import re
import logging
from urllib.parse import urljoin, urlsplit, parse_qs, unquote, quote

from .config import search_url
from .errors import InvalidUrl

logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = ("http", "https", "mailto", "ftp")
DEFAULT_SCHEME = "https://"

_WHITESPACE = re.compile(r"\s")


def is_allowed(url):
    """True when url is absolute and its scheme is on the allow-list."""
    try:
        p = urlsplit(url)
        # port parsing is lazy and raises on garbage like "http://a:b"
        p.port
    except ValueError:
        return False
    if p.scheme not in ALLOWED_SCHEMES:
        return False
    if p.scheme == "mailto":
        return bool(p.path)
    return bool(p.netloc)


# ========= USER INPUT =========
def normalize(text, engine="duck_html"):
    t = (text or "").strip()
    if not t:
        raise InvalidUrl("empty input")

    if "." not in t or _WHITESPACE.search(t):
        return search_url(engine) + quote(t, safe="")

    low = t.lower()
    url = t if low.startswith("http://") or low.startswith("https://") else DEFAULT_SCHEME + t

    try:
        p = urlsplit(url)
        p.port
    except ValueError as e:
        raise InvalidUrl(f"invalid URL: {t}") from e
    if p.scheme.lower() not in ("http", "https") or not p.hostname:
        raise InvalidUrl(f"invalid URL: {t}")
    return url


# ========= REDIRECTORS =========
def unwrap_redirector(url):
    """Return the real destination of a DuckDuckGo result link.

    Anything unexpected keeps the original url.
    """
    candidate = url
    if candidate.startswith("//duckduckgo.com/l/"):
        candidate = "https:" + candidate

    try:
        p = urlsplit(candidate)
        host = (p.hostname or "").lower()
        if not (host == "duckduckgo.com" or host.endswith(".duckduckgo.com")):
            return url
        if not p.path.startswith("/l/"):
            return url

        qs = parse_qs(p.query)
        if "uddg" not in qs:
            return url
        target = unquote(qs["uddg"][0], errors="strict")
    except (ValueError, UnicodeDecodeError) as e:
        logger.debug("redirector unwrap skipped for %s: %s", url, e)
        return url

    if is_allowed(target):
        return target
    return url


# ========= HYPERLINKS =========
def resolve_hyperlink(href, base_url):
    try:
        resolved = urljoin(base_url, href.strip())
    except (ValueError, AttributeError):
        return None
    if not is_allowed(resolved):
        return None
    return resolved
