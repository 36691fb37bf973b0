"""Component style scoping.

Every top-level rule gets its selectors prefixed with the component's scope
class, so ``.title { color: red; }`` becomes
``.sc-1a2b3c .title { color: red; }``. At-rules (``@media``,
``@keyframes``, ``@font-face``, ``@import`` ...) are copied verbatim,
including the rules nested inside them.
"""

import re
from typing import List

_LEADING_COMMENTS_RE = re.compile(r"^(\s*(?:/\*.*?\*/\s*)*)", re.DOTALL)


def _skip_string(css: str, start: int) -> int:
    quote = css[start]
    i = start + 1
    while i < len(css):
        if css[i] == "\\":
            i += 2
            continue
        if css[i] == quote:
            return i + 1
        i += 1
    return len(css)


def _split_selectors(selectors: str) -> List[str]:
    """Split on top-level commas, keeping the commas and whitespace."""
    parts = []
    depth = 0
    last = 0
    i = 0
    while i < len(selectors):
        ch = selectors[i]
        if ch in "\"'":
            i = _skip_string(selectors, i)
            continue
        if ch in "([":
            depth += 1
        elif ch in ")]":
            depth = max(depth - 1, 0)
        elif ch == "," and depth == 0:
            parts.append(selectors[last : i + 1])
            last = i + 1
        i += 1
    parts.append(selectors[last:])
    return parts


def _scope_prelude(prelude: str, scope_class: str) -> str:
    leading = _LEADING_COMMENTS_RE.match(prelude).group(1)
    rest = prelude[len(leading) :]
    if not rest.strip() or rest.lstrip().startswith("@"):
        return prelude

    scoped = []
    for part in _split_selectors(rest):
        stripped = part.lstrip()
        if not stripped or stripped == ",":
            scoped.append(part)
            continue
        indent = part[: len(part) - len(stripped)]
        scoped.append(f"{indent}.{scope_class} {stripped}")
    return leading + "".join(scoped)


def scope_css(css: str, scope_class: str) -> str:
    """Prefix every top-level selector in ``css`` with ``.scope_class``."""
    out = []
    depth = 0
    last = 0
    i = 0
    n = len(css)
    while i < n:
        ch = css[i]
        if css.startswith("/*", i):
            end = css.find("*/", i + 2)
            i = n if end == -1 else end + 2
            continue
        if ch in "\"'":
            i = _skip_string(css, i)
            continue

        if ch == "{":
            if depth == 0:
                out.append(_scope_prelude(css[last:i], scope_class))
                last = i
            depth += 1
        elif ch == "}":
            if depth > 0:
                depth -= 1
                if depth == 0:
                    out.append(css[last : i + 1])
                    last = i + 1
        elif ch == ";" and depth == 0:
            # Block-less at-rule such as @import or @charset
            out.append(css[last : i + 1])
            last = i + 1
        i += 1

    out.append(css[last:])
    return "".join(out)
