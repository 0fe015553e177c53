"""Helpers for turning free-text model replies into JSON data."""

import json
import re
from typing import Any, List


_FENCE_OPEN = re.compile(r"```[a-zA-Z]*[ \t]*\n?")
_FENCE_CLOSE = re.compile(r"```\n?")


def strip_code_fences(text: str) -> str:
    """Remove markdown code-fence markers wrapped around a JSON reply."""
    cleaned = _FENCE_OPEN.sub("", text.strip())
    cleaned = _FENCE_CLOSE.sub("", cleaned)
    return cleaned.strip()


def parse_json_reply(text: str) -> Any:
    """
    Parse a free-text reply as JSON after stripping fences.

    Raises:
        json.JSONDecodeError: If the cleaned text is not valid JSON.
    """
    return json.loads(strip_code_fences(text))


def recover_json_objects(text: str) -> List[dict]:
    """Recover the complete top-level objects of a truncated JSON array.

    When a reply hits the token limit the JSON is cut mid-object. This
    returns every object that was closed before the cut.
    """
    results = []
    depth = 0
    obj_start = None
    in_string = False
    escape_next = False

    for i, ch in enumerate(text):
        if escape_next:
            escape_next = False
            continue
        if ch == "\\" and in_string:
            escape_next = True
            continue
        if ch == '"':
            in_string = not in_string
            continue
        if in_string:
            continue

        if ch == "{":
            if depth == 0:
                obj_start = i
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
            if depth == 0 and obj_start is not None:
                try:
                    obj = json.loads(text[obj_start:i + 1])
                except json.JSONDecodeError:
                    obj = None
                if isinstance(obj, dict):
                    results.append(obj)
                obj_start = None

    return results
