import re

_OPERATORS = {
    "&&": " and ",
    "||": " or ",
    "===": "==",
    "!==": "!=",
    "!": " not ",
}


def preprocess_expression(code: str) -> str:
    """
    Pre-process a directive expression so Python's parser accepts it.

    Component authors write directive expressions the way they write their
    behavior scripts, so the JavaScript spellings of the boolean operators
    are translated to their Python equivalents:

    Example:
        !ctx.hidden && ctx.open  ->   not ctx.hidden  and  ctx.open

    It respects string boundaries (single and double quoted) so operators
    inside string literals stay untouched.
    """
    # Group 1: strings, group 2: the operator we want to replace.
    # '!' only matches when it is not the start of '!=' / '!=='.
    pattern = (
        r"(\"(?:\\.|[^\\\"\n])*\"|'(?:\\.|[^\\'\n])*')|"
        r"(&&|\|\||===|!==|!(?!=))"
    )

    def replacer(match):
        if match.group(1):
            return match.group(1)
        return _OPERATORS[match.group(2)]

    return re.sub(pattern, replacer, code).strip()
