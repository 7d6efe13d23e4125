from dataclasses import dataclass
from typing import Optional


@dataclass
class FocusableElement:
    node: object
    top: float
    left: float
    height: float = 0
    selected: bool = False

    @property
    def href(self) -> Optional[str]:
        return self.node.get("href") or None

    @property
    def center(self):
        return self.top + self.height / 2


def _hint(node, name):
    try:
        return int(node.get(name) or 0)
    except (TypeError, ValueError):
        return 0


class FocusNavigator:
    """Spatial D-pad selection over the links laid out on a surface."""

    def __init__(self, surface):
        self.surface = surface
        self.selected_node = None

    def ordered_links(self):
        elements = [
            FocusableElement(box.node, box.top, box.left, box.height)
            for box in self.surface.link_boxes()
        ]

        # every link on one row means the measured layout is useless
        if len(elements) > 1 and len({e.top for e in elements}) == 1:
            fallback = [
                FocusableElement(e.node, _hint(e.node, "data-top"), _hint(e.node, "data-left"), e.height)
                for e in elements
            ]
            fallback.sort(key=lambda e: (e.top, e.left))
            ordered = [next(m for m in elements if m.node is f.node) for f in fallback]
        else:
            ordered = sorted(elements, key=lambda e: (e.top, e.left))

        for e in ordered:
            e.selected = e.node is self.selected_node
        return ordered

    def clear_selection(self):
        self.selected_node = None

    def select_index(self, index):
        links = self.ordered_links()
        if not links:
            return None
        index %= len(links)
        self.clear_selection()
        link = links[index]
        link.selected = True
        self.selected_node = link.node

        target = max(0, link.top - self.surface.viewport_height / 3)
        max_scroll = max(0, self.surface.scroll_height - self.surface.viewport_height)
        self.surface.scroll_top = int(min(target, max_scroll))
        return index

    def viewport_center(self):
        return self.surface.scroll_top + self.surface.viewport_height / 2

    def nearest_to(self, direction, viewport_center=None, links=None):
        if links is None:
            links = self.ordered_links()
        if not links:
            return None
        if viewport_center is None:
            viewport_center = self.viewport_center()

        best_index = None
        best_score = float("inf")
        for i, link in enumerate(links):
            delta = link.center - viewport_center
            score = abs(delta)
            if direction == "down" and delta >= 0:
                score *= 0.5
            if direction == "up" and delta <= 0:
                score *= 0.5
            if score < best_score:
                best_score = score
                best_index = i
        return best_index
