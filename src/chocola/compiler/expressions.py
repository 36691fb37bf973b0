"""Sandboxed evaluator for directive expressions.

Only a tiny subset of Python expressions is admitted: names, property
access, constants, ``not``, ``and``/``or`` and ``==``/``!=`` comparisons.
Nothing is ever compiled or executed; the parsed tree is walked directly.
"""

import ast
import logging
import re
from typing import Any, Mapping

from chocola.compiler.exceptions import ExpressionError
from chocola.compiler.preprocessor import preprocess_expression

logger = logging.getLogger(__name__)

TRUE_SENTINEL = "{true}"

_LITERALS = {
    "true": True,
    "True": True,
    "false": False,
    "False": False,
}

# Name that refers to the element context itself, as in `ctx.flag`
CONTEXT_NAME = "ctx"

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][\w$]*$")


def _lookup(name: str, context: Mapping[str, Any]) -> Any:
    if name in context:
        return context[name]
    if name == CONTEXT_NAME:
        return context
    return _LITERALS.get(name)


def is_truthy(value: Any) -> bool:
    """A value is truthy only if it is ``True`` or the ``"{true}"`` sentinel."""
    return value is True or value == TRUE_SENTINEL


def evaluate(expression: str, context: Mapping[str, Any]) -> Any:
    """Evaluate ``expression`` against ``context``.

    Raises:
        ExpressionError: on syntax errors or forbidden constructs.
    """
    source = preprocess_expression(expression)
    if not source:
        raise ExpressionError("empty expression")

    # A lone key may be a Python keyword such as `for` or `class`
    if _IDENTIFIER_RE.match(source):
        return _lookup(source, context)

    try:
        tree = ast.parse(source, mode="eval")
    except SyntaxError as e:
        raise ExpressionError(f"invalid expression {expression!r}: {e.msg}") from e

    return _Evaluator(context).visit(tree.body)


def strip_braces(raw: str) -> str:
    value = raw.strip()
    if value.startswith("{") and value.endswith("}"):
        return value[1:-1].strip()
    return value


def directive_holds(raw: str, context: Mapping[str, Any]) -> bool:
    """Evaluate a directive attribute value such as ``"{flag}"``.

    Malformed expressions fail closed.
    """
    try:
        return is_truthy(evaluate(strip_braces(raw), context))
    except ExpressionError as e:
        logger.debug("Directive %r treated as false: %s", raw, e)
        return False


class _Evaluator(ast.NodeVisitor):
    def __init__(self, context: Mapping[str, Any]) -> None:
        self.context = context

    def generic_visit(self, node: ast.AST) -> Any:
        raise ExpressionError(f"unsupported syntax: {type(node).__name__}")

    def visit_Constant(self, node: ast.Constant) -> Any:
        if isinstance(node.value, (str, int, float, bool)) or node.value is None:
            return node.value
        raise ExpressionError(f"unsupported constant: {node.value!r}")

    def visit_Name(self, node: ast.Name) -> Any:
        return _lookup(node.id, self.context)

    def visit_Attribute(self, node: ast.Attribute) -> Any:
        owner = self.visit(node.value)
        if isinstance(owner, Mapping):
            return owner.get(node.attr)
        return None

    def visit_UnaryOp(self, node: ast.UnaryOp) -> Any:
        if not isinstance(node.op, ast.Not):
            raise ExpressionError("only 'not' is supported as a unary operator")
        return not is_truthy(self.visit(node.operand))

    def visit_BoolOp(self, node: ast.BoolOp) -> Any:
        values = [is_truthy(self.visit(v)) for v in node.values]
        if isinstance(node.op, ast.And):
            return all(values)
        return any(values)

    def visit_Compare(self, node: ast.Compare) -> Any:
        left = self.visit(node.left)
        for op, comparator in zip(node.ops, node.comparators):
            right = self.visit(comparator)
            if isinstance(op, ast.Eq):
                ok = left == right
            elif isinstance(op, ast.NotEq):
                ok = left != right
            else:
                raise ExpressionError(
                    f"unsupported comparison: {type(op).__name__}"
                )
            if not ok:
                return False
            left = right
        return True
