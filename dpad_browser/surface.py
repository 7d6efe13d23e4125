"""Terminal rendering surface.

Lays a content tree out as wrapped text lines and remembers where every link
landed, so focus navigation can work with (top, left) positions measured in
lines and columns.
"""

from dataclasses import dataclass

from bs4 import NavigableString
from bs4.element import PreformattedString

from .sanitizer import LINK_CLASS

BLOCK_TAGS = {
    "address", "article", "aside", "blockquote", "dd", "details", "div", "dl",
    "dt", "figcaption", "figure", "h1", "h2", "h3", "h4", "h5", "h6", "header",
    "hr", "li", "main", "ol", "p", "pre", "section", "summary", "table", "tr",
    "ul",
}
HEADINGS = {"h1", "h2", "h3", "h4", "h5", "h6"}

# side margin in columns
TEXT_SIZE_MARGINS = {"xsmall": 0, "small": 1, "medium": 2, "large": 4, "xlarge": 6}

C_RESET = "\033[0m"

# ========= COLORS =========
PALETTES = {
    "light": {
        "text": "\033[0m", "link": "\033[94m", "selected": "\033[7;94m",
        "title": "\033[1m", "dim": "\033[90m", "err": "\033[91m", "bar": "\033[7m",
    },
    "dark": {
        "text": "\033[38;5;252m", "link": "\033[38;5;215m", "selected": "\033[48;5;208;38;5;16m",
        "title": "\033[1;38;5;255m", "dim": "\033[38;5;240m", "err": "\033[38;5;131m",
        "bar": "\033[48;5;236;38;5;252m",
    },
    "sepia": {
        "text": "\033[38;5;94m", "link": "\033[38;5;130m", "selected": "\033[48;5;130;38;5;230m",
        "title": "\033[1;38;5;52m", "dim": "\033[38;5;137m", "err": "\033[38;5;124m",
        "bar": "\033[48;5;180;38;5;52m",
    },
    "darkblue": {
        "text": "\033[38;5;153m", "link": "\033[38;5;221m", "selected": "\033[48;5;221;38;5;17m",
        "title": "\033[1;38;5;195m", "dim": "\033[38;5;67m", "err": "\033[38;5;203m",
        "bar": "\033[48;5;18;38;5;153m",
    },
    "terminal": {
        "text": "\033[38;5;40m", "link": "\033[4;38;5;46m", "selected": "\033[48;5;46;38;5;16m",
        "title": "\033[1;38;5;82m", "dim": "\033[38;5;28m", "err": "\033[38;5;196m",
        "bar": "\033[48;5;22;38;5;46m",
    },
}


@dataclass
class LinkBox:
    node: object
    top: int
    left: int
    height: int = 1


# ========= LAYOUT =========
BREAK = None


def _tokens(node, out, link=None, heading=False):
    for child in node.children:
        if isinstance(child, NavigableString):
            # comments, doctypes, CDATA
            if isinstance(child, PreformattedString):
                continue
            for word in child.split():
                out.append((word, link, heading))
            continue

        name = child.name
        if name == "br":
            out.append(BREAK)
            continue

        block = name in BLOCK_TAGS
        if block:
            out.append(BREAK)
        if name == "li":
            out.append(("*", None, False))

        child_link = link
        if name == "a" and LINK_CLASS in (child.get("class") or []):
            child_link = child
        before = len(out)
        _tokens(child, out, child_link, heading or name in HEADINGS)
        if child_link is not link and not any(t is not BREAK and t[1] is child for t in out[before:]):
            out.append(("[link]", child, heading))

        if block:
            out.append(BREAK)


def _split_long(word, width):
    return [word[i:i + width] for i in range(0, len(word), width)]


def layout(fragment, width):
    """Return (lines, boxes). A line is a list of (col, text, link, heading)."""
    width = max(10, width)
    tokens = []
    _tokens(fragment, tokens)

    lines = [[]]
    boxes = {}
    col = 0
    pending_break = False

    for token in tokens:
        if token is BREAK:
            pending_break = True
            continue

        word, link, heading = token
        if pending_break and lines[-1]:
            lines.append([])
            lines.append([])
            col = 0
        pending_break = False

        for piece in _split_long(word, width):
            needed = len(piece) + (1 if col else 0)
            if col and col + needed > width:
                lines.append([])
                col = 0
                needed = len(piece)
            start = col + (needed - len(piece))
            lines[-1].append((start, piece, link, heading))
            col = start + len(piece)

            if link is not None:
                top = len(lines) - 1
                box = boxes.get(id(link))
                if box is None:
                    boxes[id(link)] = LinkBox(link, top, start)
                else:
                    box.height = top - box.top + 1

    while lines and not lines[-1]:
        lines.pop()
    return lines, list(boxes.values())


# ========= SURFACE =========
class TerminalSurface:
    def __init__(self, width=80, height=24):
        self.width = width
        self.viewport_height = height
        self.text_size = "medium"
        self.color_scheme = "light"
        self.tree = None
        self.lines = []
        self.boxes = []
        self._scroll_top = 0

    @property
    def palette(self):
        return PALETTES.get(self.color_scheme, PALETTES["light"])

    @property
    def margin(self):
        return TEXT_SIZE_MARGINS.get(self.text_size, 2)

    @property
    def scroll_height(self):
        return len(self.lines)

    @property
    def max_scroll(self):
        return max(0, self.scroll_height - self.viewport_height)

    @property
    def scroll_top(self):
        return self._scroll_top

    @scroll_top.setter
    def scroll_top(self, value):
        self._scroll_top = int(max(0, min(value, self.max_scroll)))

    def scroll_by(self, dy):
        self.scroll_top = self._scroll_top + dy

    def link_boxes(self):
        return list(self.boxes)

    def _relayout(self):
        if self.tree is None:
            self.lines, self.boxes = [], []
            return
        self.lines, self.boxes = layout(self.tree.fragment, self.width - 2 * self.margin)

    def paint(self, tree):
        self.tree = tree
        self._relayout()
        self.scroll_top = 0

    def resize(self, width, height):
        changed = width != self.width
        self.width = width
        self.viewport_height = max(1, height)
        if changed:
            self._relayout()
        self.scroll_top = self._scroll_top

    def apply_preferences(self, text_size, color_scheme):
        relayout = text_size != self.text_size
        self.text_size = text_size
        self.color_scheme = color_scheme
        if relayout:
            self._relayout()
            self.scroll_top = self._scroll_top

    def render(self, selected=None):
        """Viewport rows as ANSI strings; selected is the highlighted link node."""
        pal = self.palette
        pad = " " * self.margin
        rows = []
        for line in self.lines[self._scroll_top:self._scroll_top + self.viewport_height]:
            out = pad
            col = 0
            for start, text, link, heading in line:
                out += " " * (start - col)
                if link is not None and link is selected:
                    style = pal["selected"]
                elif link is not None:
                    style = pal["link"]
                elif heading:
                    style = pal["title"]
                else:
                    style = pal["text"]
                out += f"{style}{text}{C_RESET}"
                col = start + len(text)
            rows.append(out)
        while len(rows) < self.viewport_height:
            rows.append("")
        return rows
