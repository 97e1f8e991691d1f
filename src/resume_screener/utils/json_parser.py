"""Locate and decode the JSON object inside an LLM response."""

from __future__ import annotations

import json
import re
from collections.abc import Iterator

from resume_screener.errors import MalformedJson, NoJsonFound

_FENCE = re.compile(r"```[a-zA-Z0-9_-]*[ \t]*\n?(.*?)```", re.DOTALL)


def extract_json(text: str) -> dict:
    """Extract the first JSON object from an LLM response.

    The body of each markdown code fence is scanned first, in order, then
    the whole text. Scanning looks for top-level brace-balanced ``{...}``
    spans and the first span that decodes to an object is returned.

    Raises:
        NoJsonFound: no balanced ``{...}`` span exists in the text.
        MalformedJson: spans exist but none of them decode to an object.
    """
    if not isinstance(text, str):
        raise NoJsonFound(f"Expected response text, got {type(text).__name__}")

    first_error: Exception | None = None
    found = False
    for chunk in _search_texts(text):
        for span in iter_brace_spans(chunk):
            found = True
            try:
                data = json.loads(span)
            except json.JSONDecodeError as exc:
                first_error = first_error or exc
                continue
            if isinstance(data, dict):
                return data

    if not found:
        raise NoJsonFound(f"No JSON object found in text: {text[:200]!r}")
    raise MalformedJson(f"Could not decode JSON object: {first_error}")


def _search_texts(text: str) -> Iterator[str]:
    text = text.strip()
    for match in _FENCE.finditer(text):
        yield match.group(1)
    yield strip_code_fences(text)
    yield text


def strip_code_fences(text: str) -> str:
    """Return the contents of the first fenced block, or the stripped text."""
    text = text.strip()
    match = _FENCE.search(text)
    if match:
        return match.group(1).strip()
    # An opening fence whose closing fence was cut off
    if text.startswith("```"):
        return text.split("\n", 1)[1].strip() if "\n" in text else ""
    return text


def find_json_span(text: str) -> str | None:
    """Return the first top-level brace-balanced span, or None."""
    return next(iter_brace_spans(text), None)


def iter_brace_spans(text: str) -> Iterator[str]:
    """Yield each top-level ``{...}`` span in order.

    Braces inside JSON string literals (including escaped quotes) do not
    count toward nesting. An unbalanced trailing span is not yielded.
    """
    depth = 0
    start = -1
    in_string = False
    escaped = False
    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == "{":
            if depth == 0:
                start = i
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                yield text[start : i + 1]
        elif ch == '"' and depth > 0:
            in_string = True
