"""Lenient JSON extraction for LLM responses.

Models wrap JSON in markdown fences, add commentary around it, or leave
trailing commas. ``parse_llm_json`` strips the noise and tries a few
repairs before giving up.
"""

import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*\n?(.*?)```", re.DOTALL)
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_START_RE = re.compile(r"[{\[]")

_MISSING = object()
_DECODER = json.JSONDecoder()


def _decode_embedded(text: str) -> Any:
    """Decode the JSON value embedded in surrounding prose.

    Each ``{`` or ``[`` is tried as a start position in turn, so brackets
    in leading prose do not hide the value that follows them. The first
    object wins; a bare array is returned only when no object follows it.

    Raises:
        json.JSONDecodeError: If no start position decodes
    """
    error = json.JSONDecodeError("No JSON object found", text, 0)
    first_array = _MISSING
    pos = 0
    while True:
        match = _START_RE.search(text, pos)
        if match is None:
            break
        try:
            value, end = _DECODER.raw_decode(text, match.start())
        except json.JSONDecodeError as e:
            error = e
            pos = match.start() + 1
            continue
        if isinstance(value, dict):
            return value
        if first_array is _MISSING:
            first_array = value
        pos = end
    if first_array is not _MISSING:
        return first_array
    raise error


def _candidates(text: str) -> list[str]:
    cleaned = text.strip()
    found = [cleaned, _TRAILING_COMMA_RE.sub(r"\1", cleaned)]

    fence = _FENCE_RE.search(cleaned)
    if fence:
        block = fence.group(1).strip()
        found += [block, _TRAILING_COMMA_RE.sub(r"\1", block)]
    return found


def parse_llm_json(response: Any, default: Any = _MISSING) -> Any:
    """Parse JSON out of an LLM response.

    Args:
        response: Raw response text (already-parsed dicts/lists pass through)
        default: Value returned when nothing parses. If omitted, the
                 last JSONDecodeError is raised instead.

    Returns:
        Parsed JSON value, or ``default``.
    """
    if isinstance(response, (dict, list)):
        return response
    if not isinstance(response, str) or not response.strip():
        if default is _MISSING:
            raise json.JSONDecodeError("Empty response", str(response or ""), 0)
        return default

    for candidate in _candidates(response):
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue

    try:
        return _decode_embedded(_TRAILING_COMMA_RE.sub(r"\1", response))
    except json.JSONDecodeError as e:
        last_error = e

    logger.debug("Could not parse JSON from response (%d chars)", len(response))
    if default is _MISSING:
        raise last_error
    return default
