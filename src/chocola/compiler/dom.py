"""lxml helpers for reading, rewriting and writing the page tree."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

import lxml.html
from lxml import etree
from lxml.html import HtmlElement

from chocola.compiler.exceptions import MissingContainerError, SourceIndexError

CONTAINER_TAG = "app"
FRAGMENT_TAG = "chocola-fragment"

# Tags never treated as component usage sites. lxml lowercases tag names.
HTML_TAGS = frozenset(
    """
    a abbr address area article aside audio b base bdi bdo blockquote body br
    button canvas caption cite code col colgroup data datalist dd del details
    dfn dialog div dl dt em embed fieldset figcaption figure footer form h1 h2
    h3 h4 h5 h6 head header hgroup hr html i iframe img input ins kbd label
    legend li link main map mark menu meta meter nav noscript object ol
    optgroup option output p param picture pre progress q rp rt ruby s samp
    script search section select slot small source span strong style sub
    summary sup table tbody td template textarea tfoot th thead time title tr
    track u ul var video wbr
    svg g path circle ellipse line polyline polygon rect text tspan defs use
    symbol lineargradient radialgradient stop clippath mask pattern image
    foreignobject math
    app chocola-fragment
    """.split()
)


def is_custom_tag(tag: object) -> bool:
    # Comments and processing instructions have non-string tags
    return isinstance(tag, str) and tag.lower() not in HTML_TAGS


def parse_document(source: str, path: Optional[str] = None) -> HtmlElement:
    try:
        return lxml.html.document_fromstring(source)
    except etree.LxmlError as e:
        raise SourceIndexError(f"Could not parse the index page: {e}", path) from e


def find_container(doc: HtmlElement, tag: str = CONTAINER_TAG) -> HtmlElement:
    for element in doc.iter(tag):
        return element
    raise MissingContainerError(f"Index page must have an <{tag}> element")


def parse_fragment(markup: str) -> HtmlElement:
    """Parse a markup body into a wrapper element holding its top-level nodes."""
    if not markup.strip():
        wrapper = lxml.html.Element(FRAGMENT_TAG)
        wrapper.text = markup or None
        return wrapper
    return lxml.html.fragment_fromstring(markup, create_parent=FRAGMENT_TAG)


def first_element(wrapper: HtmlElement) -> Optional[HtmlElement]:
    for child in wrapper:
        if isinstance(child.tag, str):
            return child
    return None


def _add_text_before(parent: HtmlElement, index: int, text: Optional[str]) -> None:
    if not text:
        return
    if index == 0:
        parent.text = (parent.text or "") + text
    else:
        prev = parent[index - 1]
        prev.tail = (prev.tail or "") + text


def replace_with_content(
    element: HtmlElement, text: Optional[str], children: Sequence[HtmlElement]
) -> None:
    """Replace ``element`` with ``text`` followed by ``children``.

    The element's tail text stays in place after the inserted content.
    """
    parent = element.getparent()
    if parent is None:
        raise ValueError(f"<{element.tag}> has no parent to splice into")

    index = parent.index(element)
    tail = element.tail
    # lxml drops the tail together with the element
    parent.remove(element)

    _add_text_before(parent, index, text)
    for offset, child in enumerate(children):
        parent.insert(index + offset, child)
    _add_text_before(parent, index + len(children), tail)


def unwrap(wrapper: HtmlElement, target: HtmlElement) -> List[HtmlElement]:
    """Splice the contents of ``wrapper`` in place of ``target``."""
    children = list(wrapper)
    replace_with_content(target, wrapper.text, children)
    return children


def is_attached(element: HtmlElement, ancestor: HtmlElement) -> bool:
    node: Optional[HtmlElement] = element
    while node is not None:
        if node is ancestor:
            return True
        node = node.getparent()
    return False


def add_class(element: HtmlElement, class_name: str) -> None:
    classes = (element.get("class") or "").split()
    if class_name not in classes:
        classes.append(class_name)
    element.set("class", " ".join(classes))


def append_style(element: HtmlElement, declaration: str) -> None:
    current = (element.get("style") or "").strip().rstrip(";").strip()
    element.set("style", f"{current}; {declaration}" if current else declaration)


def iter_elements(root: HtmlElement) -> Iterable[HtmlElement]:
    for element in root.iterdescendants():
        if isinstance(element.tag, str):
            yield element


def _ensure_section(doc: HtmlElement, tag: str) -> HtmlElement:
    for section in doc.iterchildren(tag):
        return section
    section = lxml.html.Element(tag)
    if tag == "head":
        doc.insert(0, section)
    else:
        doc.append(section)
    return section


def append_runtime_script(doc: HtmlElement, filename: str) -> HtmlElement:
    body = _ensure_section(doc, "body")
    script = lxml.html.Element("script", type="module", src=f"./{filename}")
    body.append(script)
    return script


def append_stylesheet_link(doc: HtmlElement, filename: str) -> HtmlElement:
    head = _ensure_section(doc, "head")
    link = lxml.html.Element("link", rel="stylesheet", href=f"./{filename}")
    head.append(link)
    return link


def to_markup(element: HtmlElement) -> str:
    return lxml.html.tostring(element, encoding="unicode", with_tail=False)


def inner_markup(element: HtmlElement) -> str:
    parts = [element.text or ""]
    parts.extend(lxml.html.tostring(c, encoding="unicode") for c in element)
    return "".join(parts)


def serialize_document(doc: HtmlElement) -> str:
    return lxml.html.tostring(
        doc,
        doctype="<!DOCTYPE html>",
        encoding="unicode",
        pretty_print=True,
        method="html",
    )
