import re
import copy
import logging
from dataclasses import dataclass

from bs4 import BeautifulSoup, Comment, Doctype

from .urls import resolve_hyperlink

logger = logging.getLogger(__name__)

# First match wins.
CONTENT_SELECTORS = (
    "article",
    "main",
    '[role="main"]',
    "#content",
    ".content",
    ".post",
    ".results",
    "#links",
)

JUNK_TAGS = [
    "script", "style", "iframe", "frame", "ads", "nav", "footer",
    "img", "picture", "video", "audio", "svg",
    "input", "button", "select", "textarea", "form",
    "noscript", "canvas", "object", "embed",
]

# document metadata that only shows up when the markup has no <body>
HEAD_TAGS = ["head", "title", "meta", "link", "base"]

LINK_CLASS = "dpad-link"

_EVENT_ATTR = re.compile(r"^on", re.IGNORECASE)


# ========= CLEANING =========
def clean_paragraph(text):
    text = text.replace("\n", " ")
    text = re.sub(r"\s+", " ", text)
    return text.strip()


# ========= CONTENT TREE =========
@dataclass(frozen=True, eq=False)
class ContentTree:
    """A sanitized, detached page fragment. Never patched after creation."""

    fragment: BeautifulSoup
    base_url: str = ""
    page_title: str = ""

    @property
    def heading(self):
        h = self.fragment.find(["h1", "h2"])
        if h:
            return clean_paragraph(h.get_text(" "))
        return ""

    @classmethod
    def message(cls, *paragraphs, title=""):
        """Informational page built from plain text (welcome, errors)."""
        fragment = BeautifulSoup("", "html.parser")
        if title:
            h = fragment.new_tag("h1")
            h.string = title
            fragment.append(h)
        for text in paragraphs:
            p = fragment.new_tag("p")
            p.string = text
            fragment.append(p)
        return cls(fragment, "", title)


def extract_title(soup):
    if soup.title and soup.title.string:
        return clean_paragraph(soup.title.string)
    return ""


def find_content_root(soup):
    for selector in CONTENT_SELECTORS:
        node = soup.select_one(selector)
        if node is not None:
            return node
    # html.parser does not invent a body when the markup omits it
    return soup.body or soup.find("html") or soup


# ========= SANITIZING =========
def _strip_junk(root):
    for tag in root.find_all(JUNK_TAGS + HEAD_TAGS):
        tag.extract()
    for comment in root.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()


def _strip_attributes(tag):
    for name in list(tag.attrs):
        if _EVENT_ATTR.match(name) or name.lower() == "style":
            del tag[name]


def _rewrite_link(a, base_url):
    href = a.get("href")
    if href:
        resolved = resolve_hyperlink(href, base_url)
        if resolved:
            a["href"] = resolved
        else:
            del a["href"]
    elif "href" in a.attrs:
        del a["href"]

    classes = a.get("class") or []
    if LINK_CLASS not in classes:
        a["class"] = list(classes) + [LINK_CLASS]
    a["tabindex"] = "0"
    if "target" in a.attrs:
        del a["target"]
    a["rel"] = "noreferrer"


def _detach(root):
    fragment = BeautifulSoup("", "html.parser")
    for child in list(root.children):
        if isinstance(child, Doctype):
            continue
        fragment.append(copy.copy(child))
    return fragment


def sanitize(markup, base_url):
    soup = BeautifulSoup(markup, "html.parser")
    title = extract_title(soup)
    root = find_content_root(soup)

    _strip_junk(root)

    for tag in root.find_all(True):
        try:
            _strip_attributes(tag)
            if tag.name == "a":
                _rewrite_link(tag, base_url)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning("sanitizer skipped <%s>: %s", tag.name, e)

    return ContentTree(_detach(root), base_url, title)
