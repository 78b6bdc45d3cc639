"""JSON formatting of structured values for output."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

INDENT = 2


def json_formatter(no_white_space: bool = False) -> Callable[[Any], str]:
    """Returns a function formatting a value as JSON text.

    The text is pretty printed over multiple lines, or, with no_white_space,
    compacted to a single line without any inserted whitespace.
    """
    if no_white_space:
        options = {"separators": (",", ":")}
    else:
        options = {"indent": INDENT, "separators": (",", ": ")}

    def format_value(value: Any) -> str:
        return json.dumps(value, ensure_ascii=False, **options)

    return format_value
