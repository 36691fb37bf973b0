"""Content projection into <slot> placeholders."""

import copy
from dataclasses import dataclass, field
from typing import List, Optional

from lxml.html import HtmlElement

from chocola.compiler.dom import is_attached, replace_with_content

SLOT_TAG = "slot"


@dataclass
class LightDom:
    """Inner markup of a usage site, captured before expansion."""

    text: Optional[str] = None
    children: List[HtmlElement] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.text and not self.children

    def fresh_copy(self) -> List[HtmlElement]:
        return [copy.deepcopy(child) for child in self.children]


def capture_light_dom(element: HtmlElement) -> LightDom:
    return LightDom(
        text=element.text,
        children=[copy.deepcopy(child) for child in element],
    )


def project_slots(fragment: HtmlElement, light_dom: LightDom) -> List[HtmlElement]:
    """Replace every <slot> below ``fragment`` with a copy of ``light_dom``.

    Slot fallback content is discarded. Returns the projected elements, in
    document order, so custom tags among them can still be expanded.
    """
    # Outer slots first; a slot nested in another slot goes away with it
    slots = list(fragment.iterdescendants(SLOT_TAG))
    projected: List[HtmlElement] = []
    for slot in slots:
        if not is_attached(slot, fragment):
            continue
        children = light_dom.fresh_copy()
        replace_with_content(slot, light_dom.text, children)
        projected.extend(children)
    return projected
