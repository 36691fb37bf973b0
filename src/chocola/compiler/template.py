"""Interpolation and conditional directives for component bodies."""

import re
from typing import Mapping, Optional

from lxml.html import HtmlElement

from chocola.compiler.dom import append_style, parse_fragment
from chocola.compiler.expressions import directive_holds

IF_DIRECTIVE = "if"
DEL_IF_DIRECTIVE = "del-if"
DIRECTIVES = (IF_DIRECTIVE, DEL_IF_DIRECTIVE)

HIDDEN_STYLE = "display: none"

# {name} and the older {ctx.name} spelling
INTERPOLATION_RE = re.compile(r"\{(?:ctx\.)?(\w+)\}")

# Raw text elements whose content is code, not markup text
_RAW_TEXT_TAGS = ("script", "style")


def interpolate(text: Optional[str], context: Mapping[str, str]) -> Optional[str]:
    """Replace ``{identifier}`` with its context value ('' when absent)."""
    if not text or "{" not in text:
        return text
    return INTERPOLATION_RE.sub(lambda m: str(context.get(m.group(1), "")), text)


def interpolate_tree(root: HtmlElement, context: Mapping[str, str]) -> None:
    """Interpolate text, tails and attribute values below ``root``."""
    root.text = interpolate(root.text, context)
    for element in root.iterdescendants():
        element.tail = interpolate(element.tail, context)
        if not isinstance(element.tag, str):
            continue

        if element.tag not in _RAW_TEXT_TAGS:
            element.text = interpolate(element.text, context)

        for name, value in element.attrib.items():
            if name in DIRECTIVES:
                continue
            new_value = interpolate(value, context)
            if new_value != value:
                element.set(name, new_value)


def apply_directives(parent: HtmlElement, context: Mapping[str, str]) -> None:
    """Resolve ``if`` / ``del-if`` depth-first below ``parent``.

    A false ``if`` hides the element, a false ``del-if`` removes it with its
    subtree. Directive attributes never survive into the output.
    """
    for child in list(parent):
        if not isinstance(child.tag, str):
            continue

        del_if = child.attrib.pop(DEL_IF_DIRECTIVE, None)
        show_if = child.attrib.pop(IF_DIRECTIVE, None)

        if del_if is not None and not directive_holds(del_if, context):
            child.drop_tree()
            continue

        if show_if is not None and not directive_holds(show_if, context):
            append_style(child, HIDDEN_STYLE)

        apply_directives(child, context)


def render_body(body: str, context: Mapping[str, str]) -> HtmlElement:
    """Parse a component body and evaluate it against ``context``."""
    fragment = parse_fragment(body)
    interpolate_tree(fragment, context)
    apply_directives(fragment, context)
    return fragment
