"""
JSON Utilities for LLM Response Parsing.

LLM responses routinely wrap the JSON payload in extra material:
- reasoning blocks (<think>...</think>) emitted by reasoning models
- Markdown code fences (```json ... ```)
- prose before or after the payload

normalize_llm_output() strips all of it; parse_llm_json() parses the result
and raises MalformedOutputError when nothing parseable remains. Both are pure
functions with no network access.

Wrappers are only recognised where serialized JSON can never produce them:
at the start of the text, or on a line of their own. A JSON string value
holds no raw newline, so fences, tags or braces inside string values are
left untouched.
"""

import json
import re
from typing import Any

from catalyst.common.errors import MalformedOutputError

_REASONING_TAGS = "|".join(("think", "thinking", "reasoning"))

_OPENING_TAG = re.compile(r"<(%s)\b[^>]*>" % _REASONING_TAGS, re.IGNORECASE)

# Some providers stream the opening tag separately, leaving "...</think>\n"
_DANGLING_REASONING = re.compile(r"</(?:%s)\s*>[ \t]*(?:\r?\n|$)" % _REASONING_TAGS, re.IGNORECASE)

_FENCE_OPEN = re.compile(r"(?:^|\n)[ \t]*```[ \t]*[\w+-]*[ \t]*\r?\n")
_FENCE_CLOSE = re.compile(r"\r?\n[ \t]*```[ \t]*(?=\r?\n|$)")

_CLOSERS = {"{": "}", "[": "]"}


def _first_json_start(text: str) -> int:
    starts = [i for i in (text.find("{"), text.find("[")) if i != -1]
    return min(starts) if starts else len(text)


def strip_reasoning_blocks(text: str) -> str:
    """
    Remove reasoning blocks emitted before the actual answer.

    Only leading blocks are removed, plus a closing tag whose opening tag
    was lost, when it ends its line before any JSON starts.

    Args:
        text: Raw model output

    Returns:
        Text with the leading <think>/<thinking>/<reasoning> material removed

    Example:
        >>> strip_reasoning_blocks('<think>hmm</think>{"a": 1}')
        '{"a": 1}'
    """
    result = text.strip()
    while True:
        opening = _OPENING_TAG.match(result)
        if not opening:
            break
        closing = re.compile(r"</%s\s*>" % opening.group(1), re.IGNORECASE).search(result, opening.end())
        if not closing:
            # Reasoning cut off before the answer started
            return ""
        result = result[closing.end():].strip()

    if result[:1] not in ("{", "[", '"'):
        dangling = _DANGLING_REASONING.search(result)
        if (
            dangling
            and dangling.start() < _first_json_start(result)
            and not _OPENING_TAG.search(result, 0, dangling.start())
        ):
            result = result[dangling.end():].strip()
    return result


def strip_code_fences(text: str) -> str:
    """
    Unwrap the first Markdown fenced block, if any.

    The opening fence must start a line and the closing fence must sit on a
    line of its own. Also handles an unterminated opening fence, which models
    produce when they run out of tokens.
    """
    opening = _FENCE_OPEN.search(text)
    if not opening:
        return text.strip()

    body = text[opening.end():]
    closing = _FENCE_CLOSE.search(body)
    if closing:
        return body[:closing.start()].strip()

    body = body.rstrip()
    if body.endswith("```"):
        body = body[:-3]
    return body.strip()


def extract_json_payload(text: str) -> str:
    """
    Slice the JSON payload out of surrounding prose.

    Takes everything from the first '{' or '[' to the last matching closer.
    Text without either bracket is returned unchanged so bare scalars
    ("42", "true", '"text"') still parse.

    Args:
        text: Text that may contain a JSON object or array

    Returns:
        The candidate JSON string
    """
    start = _first_json_start(text)
    if start == len(text):
        return text.strip()

    end = text.rfind(_CLOSERS[text[start]])
    if end < start:
        # Truncated payload: hand the tail to the parser and let it fail loudly
        return text[start:].strip()
    return text[start:end + 1]


def normalize_llm_output(text: str) -> str:
    """
    Turn a raw LLM response into a candidate JSON string.

    Applies, in order: reasoning-block removal, code-fence removal (and
    reasoning removal again inside the fence), payload extraction.
    Idempotent on already-clean JSON.
    """
    if text is None:
        return ""
    cleaned = strip_reasoning_blocks(text)
    cleaned = strip_reasoning_blocks(strip_code_fences(cleaned))
    try:
        # Already valid JSON (including strings that contain braces)
        json.loads(cleaned)
        return cleaned
    except json.JSONDecodeError:
        return extract_json_payload(cleaned)


def parse_llm_json(text: str, repair: bool = False) -> Any:
    """
    Parse JSON from an LLM response.

    Args:
        text: Raw LLM response text
        repair: Run json-repair on the normalised text when strict parsing
            fails (single quotes, trailing commas, unquoted keys)

    Returns:
        The parsed value (object, array or scalar)

    Raises:
        MalformedOutputError: If no valid JSON can be extracted

    Example:
        >>> parse_llm_json('Sure!\\n```json\\n{"key": "value"}\\n```')
        {'key': 'value'}
    """
    if not text or not text.strip():
        raise MalformedOutputError("empty response", raw_text=text or "")

    payload = normalize_llm_output(text)
    if not payload:
        raise MalformedOutputError("no content left after normalisation", raw_text=text)

    try:
        return json.loads(payload)
    except json.JSONDecodeError as e:
        if not repair:
            raise MalformedOutputError(f"invalid JSON ({e.msg} at char {e.pos})", raw_text=text) from e
        strict_error = e

    from json_repair import repair_json

    repaired = repair_json(payload, return_objects=True)
    # json-repair returns "" when it could not recover anything
    if repaired == "" and payload.strip() not in ('""', "''"):
        raise MalformedOutputError(
            f"invalid JSON ({strict_error.msg}) and repair failed",
            raw_text=text,
        ) from strict_error
    return repaired
