"""Normalise generated source and check that it parses.

The templates leave stray whitespace behind; :func:`format_source` trims
it so the output is stable byte for byte, then compiles the result with
:func:`ast.parse`. Text that does not parse raises
:class:`~specsdk.exceptions.FormatError`.
"""

from __future__ import annotations

import ast
import re

from specsdk.exceptions import FormatError

_EXTRA_BLANK_LINES_RE = re.compile(r"\n{4,}")


def format_source(text: str, filename: str = "<generated>") -> str:
    """Return *text* with normalised whitespace.

    * trailing whitespace is removed from every line,
    * runs of more than two blank lines collapse to two,
    * leading blank lines are dropped and the text ends with one newline.

    Args:
        text: Rendered Python source.
        filename: Name used in error messages.

    Returns:
        The formatted source.

    Raises:
        FormatError: If the formatted source is not valid Python.
    """
    lines = [line.rstrip() for line in text.replace("\r\n", "\n").split("\n")]
    formatted = _EXTRA_BLANK_LINES_RE.sub("\n\n\n", "\n".join(lines)).strip("\n") + "\n"

    try:
        ast.parse(formatted, filename=filename)
    except SyntaxError as exc:
        raise FormatError(filename, f"line {exc.lineno}: {exc.msg}") from exc
    return formatted
