"""
Turning the model's generated text into a SuggestedReply.

The model is asked for a JSON object but does not always produce valid
JSON. Strategies are tried in order and the first one that returns a value
wins; the last one always succeeds.
"""
import json
import logging
import re
from typing import Callable

from pydantic import ValidationError

from reply_helper.errors import ParseError
from reply_helper.schemas import SuggestedReply

logger = logging.getLogger(__name__)

FIELDS = ("answer", "source", "justification")
UNPARSEABLE_ANSWER = "The AI response could not be parsed. Please review the historical matches below or try again."
RAW_PREVIEW_CHARS = 500

_FENCE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL)
_ESCAPES = {'"': '"', "\\": "\\", "/": "/", "n": "\n", "t": "\t", "r": "\r"}
_ESCAPE_SEQ = re.compile(r'\\(["\\/ntr])')


def _strip_fence(text: str) -> str:
    m = _FENCE.match(text)
    return m.group(1) if m else text


def _field_pattern(name: str) -> re.Pattern:
    return re.compile(rf'"{name}"\s*:\s*"((?:[^"\\]|\\.)*)"', re.DOTALL)


_FIELD_PATTERNS = {name: _field_pattern(name) for name in FIELDS}


def unescape(value: str) -> str:
    return _ESCAPE_SEQ.sub(lambda m: _ESCAPES[m.group(1)], value)


def parse_strict(text: str) -> SuggestedReply:
    try:
        data = json.loads(_strip_fence(text))
    except ValueError as e:
        raise ParseError(f"Generated text is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ParseError("Generated JSON is not an object")

    fields = {name: data.get(name) for name in FIELDS}
    try:
        return SuggestedReply(**{k: "" if v is None else str(v) for k, v in fields.items()})
    except ValidationError as e:
        raise ParseError(str(e)) from e


def parse_tolerant(text: str) -> SuggestedReply:
    found = {}
    for name, pattern in _FIELD_PATTERNS.items():
        m = pattern.search(text)
        if m:
            found[name] = unescape(m.group(1))

    if "answer" not in found:
        raise ParseError("No answer field found in generated text")
    return SuggestedReply(**found)


def placeholder_reply(text: str) -> SuggestedReply:
    preview = (text or "").strip()
    if len(preview) > RAW_PREVIEW_CHARS:
        preview = preview[:RAW_PREVIEW_CHARS] + "..."
    return SuggestedReply(
        answer=UNPARSEABLE_ANSWER,
        source="",
        justification=f"Raw AI output: {preview}" if preview else "The AI returned no text.",
    )


STRATEGIES: tuple[Callable[[str], SuggestedReply], ...] = (parse_strict, parse_tolerant)


def parse_generated_reply(text: str | None) -> SuggestedReply:
    if text:
        for strategy in STRATEGIES:
            try:
                return strategy(text)
            except ParseError as e:
                logger.debug("%s failed: %s", strategy.__name__, e)
        logger.warning("Could not parse generated reply; using placeholder")
    return placeholder_reply(text or "")
