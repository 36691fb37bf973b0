"""Behavior script rewriting.

Component scripts follow a fixed authoring convention::

    function RUNTIME(self, ctx = {count: 0, label: "Click"}) {
        self.addEventListener("click", () => ...);
    }

The rewriter hoists the default context literal into statements that only
fill in missing values, then renames the entry point so that several
components can live in one runtime file::

    function aRUNTIME(self, ctx) {
    ctx.count = ctx.count || 0;
    ctx.label = ctx.label || "Click";
        self.addEventListener("click", () => ...);
    }
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_ENTRY_POINT = "RUNTIME"

CTX_LITERAL_RE = re.compile(r"\bctx\s*=\s*(\{[^{}]*\})")

_TOKEN_RE = re.compile(
    r'("(?:\\.|[^"\\])*")'  # double quoted string, kept
    r"|'((?:\\.|[^'\\])*)'"  # single quoted string, re-quoted
    r"|([{,]\s*)([A-Za-z_$][\w$]*)(\s*:)"  # bare key
)
_TRAILING_COMMA_RE = re.compile(r",(\s*[}\]])")
_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][\w$]*$")


def parse_default_context(literal: str) -> Dict[str, Any]:
    """Parse a ``{ key: value }`` literal; malformed input yields ``{}``."""

    def replacer(match):
        if match.group(1):
            return match.group(1)
        if match.group(2) is not None:
            return json.dumps(match.group(2))
        return f'{match.group(3)}"{match.group(4)}"{match.group(5)}'

    normalized = _TOKEN_RE.sub(replacer, literal)
    normalized = _TRAILING_COMMA_RE.sub(r"\1", normalized)

    try:
        parsed = json.loads(normalized)
    except json.JSONDecodeError as e:
        logger.debug("Ignoring malformed default context %r: %s", literal, e)
        return {}

    if not isinstance(parsed, dict):
        return {}
    return parsed


def default_assignments(defaults: Dict[str, Any]) -> str:
    lines = []
    for key, value in defaults.items():
        target = f"ctx.{key}" if _IDENTIFIER_RE.match(key) else f"ctx[{json.dumps(key)}]"
        lines.append(f"{target} = {target} || {json.dumps(value)};")
    return "".join(f"{line}\n" for line in lines)


class ScriptTransformer(ABC):
    """Rewrites one component script for the shared runtime file."""

    entry_point: str = DEFAULT_ENTRY_POINT

    @abstractmethod
    def transform(self, source: str, runtime_id: str) -> str:
        """Return ``source`` rewritten for the runtime identifier."""

    def entry_name(self, runtime_id: str) -> str:
        return f"{runtime_id}{self.entry_point}"


class RuntimeScriptTransformer(ScriptTransformer):
    """Text based rewriter for scripts using the RUNTIME convention."""

    def __init__(self, entry_point: str = DEFAULT_ENTRY_POINT) -> None:
        self.entry_point = entry_point
        escaped = re.escape(entry_point)
        self._opening_re = re.compile(rf"\b{escaped}\s*\([^)]*\)\s*\{{")
        self._symbol_re = re.compile(rf"\b{escaped}\b")

    def hoist_defaults(self, source: str) -> str:
        match = CTX_LITERAL_RE.search(source)
        if not match:
            return source

        defaults = parse_default_context(match.group(1))
        source = source[: match.start()] + "ctx" + source[match.end() :]

        block = default_assignments(defaults)
        if block:
            source = self._opening_re.sub(
                lambda m: m.group(0) + "\n" + block, source, count=1
            )
        return source

    def transform(self, source: str, runtime_id: str) -> str:
        source = self.hoist_defaults(source)
        return self._symbol_re.sub(self.entry_name(runtime_id), source)


def activation_call(
    transformer: ScriptTransformer,
    runtime_id: str,
    binding_id: str,
    context: Dict[str, str],
    binding_attr: str = "chid",
) -> str:
    """One call attaching the entry point to a single rendered instance."""
    selector = f'[{binding_attr}="{binding_id}"]'
    return (
        f"{transformer.entry_name(runtime_id)}("
        f"document.querySelector({json.dumps(selector)}), {json.dumps(context)});"
    )


def script_text(script: Optional[Any]) -> Optional[str]:
    """Script sources may be given as text or as a callable returning text."""
    if script is None:
        return None
    if callable(script):
        script = script()
    text = str(script)
    return text if text.strip() else None
