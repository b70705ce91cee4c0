"""Turn free-form AI output into a validated presentation payload.

The AI service is asked for JSON but routinely wraps it in markdown fences,
prefixes it with chatter, leaves trailing commas, or stops mid-object when it
runs out of output tokens. :class:`ResilientDecoder` tries a fixed cascade of
strategies, each a pure ``text -> parsed | None`` function, and stops at the
first one that yields data.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .errors import GenerationParseError, SchemaValidationError

LOGGER = logging.getLogger(__name__)

FENCE_PATTERN = re.compile(r"```[ \t]*([A-Za-z0-9_-]*)[ \t]*\r?\n?(.*?)(?:```|\Z)", re.DOTALL)
CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
TRAILING_COMMA = re.compile(r",(\s*[}\]])")
CLOSERS = {"{": "}", "[": "]"}

# Upper bound on cut points tried by truncation recovery.
MAX_RECOVERY_ATTEMPTS = 400

Strategy = Callable[[str], Optional[Any]]


# ---------------------------------------------------------------------------
# Low level helpers
# ---------------------------------------------------------------------------

def _loads(text: str) -> Optional[Any]:
    if not text or not text.strip():
        return None
    try:
        value = json.loads(text)
    except (json.JSONDecodeError, RecursionError):
        return None
    if isinstance(value, (dict, list)):
        return value
    return None


def _fenced_interior(text: str) -> Optional[str]:
    match = FENCE_PATTERN.search(text)
    if match is None:
        return None
    return match.group(2).strip()


def _first_opening(text: str) -> int:
    positions = [pos for pos in (text.find("{"), text.find("[")) if pos >= 0]
    return min(positions) if positions else -1


def _scan(text: str) -> Tuple[List[str], bool, List[int]]:
    """Walk ``text`` as JSON tokens.

    Returns the stack of unclosed openers, whether the scan ended inside a
    string literal, and the offsets just after each closing bracket that
    appears outside of strings.
    """

    stack: List[str] = []
    in_string = False
    escaped = False
    close_points: List[int] = []
    for idx, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char in CLOSERS:
            stack.append(char)
        elif char in ("}", "]"):
            if stack and CLOSERS[stack[-1]] == char:
                stack.pop()
            close_points.append(idx + 1)
    return stack, in_string, close_points


def _is_payload(value: Any) -> bool:
    if isinstance(value, dict):
        return True
    return isinstance(value, list) and any(isinstance(item, dict) for item in value)


def _payload_start(text: str) -> int:
    """Offset of the opening bracket the payload most likely starts at.

    Balanced spans that do not hold a JSON object even after sanitising
    (``[v1]``, ``{topic}``) are chatter and skipped whole. An opener that
    never closes is kept, since a truncated payload looks exactly like that.
    Falls back to the first opener when nothing qualifies.
    """

    first = _first_opening(text)
    start = first
    while start >= 0:
        span = _balanced_span(text, start)
        if span is None:
            return start
        if _is_payload(_loads(sanitize(span))):
            return start
        end = start + len(span)
        following = _first_opening(text[end:])
        start = end + following if following >= 0 else -1
    return first


def _balanced_span(text: str, start: Optional[int] = None) -> Optional[str]:
    if start is None:
        start = _first_opening(text)
    if start < 0:
        return None
    depth = 0
    in_string = False
    escaped = False
    for idx in range(start, len(text)):
        char = text[idx]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char in CLOSERS:
            depth += 1
        elif char in ("}", "]"):
            depth -= 1
            if depth == 0:
                return text[start : idx + 1]
    return None


def best_effort_substring(text: str) -> str:
    """The part of ``text`` most likely to hold the payload.

    Fenced content wins; otherwise everything from the payload's opening
    bracket, past any bracketed chatter before it.
    """

    interior = _fenced_interior(text)
    candidate = interior if interior is not None else text
    start = _payload_start(candidate)
    if start < 0:
        return candidate.strip()
    return candidate[start:].strip()


def sanitize(text: str) -> str:
    cleaned = CONTROL_CHARS.sub("", text)
    previous = None
    while previous != cleaned:
        previous = cleaned
        cleaned = TRAILING_COMMA.sub(r"\1", cleaned)
    return cleaned


def _close(fragment: str) -> Optional[str]:
    fragment = fragment.rstrip()
    while fragment.endswith(","):
        fragment = fragment[:-1].rstrip()
    if fragment.endswith(":"):
        return None
    stack, in_string, _ = _scan(fragment)
    if in_string:
        fragment += '"'
    return fragment + "".join(CLOSERS[opener] for opener in reversed(stack))


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

def parse_direct(text: str) -> Optional[Any]:
    """1. The trimmed text is already valid JSON."""

    return _loads(text.strip())


def parse_fenced(text: str) -> Optional[Any]:
    """2. The payload sits inside a fenced code block."""

    interior = _fenced_interior(text)
    if interior is None:
        return None
    return _loads(interior)


def parse_balanced(text: str) -> Optional[Any]:
    """3. The first balanced top-level object or array holding the payload."""

    interior = _fenced_interior(text)
    span = None
    if interior is not None:
        span = _balanced_span(interior, _payload_start(interior))
    if span is None:
        span = _balanced_span(text, _payload_start(text))
    if span is None:
        return None
    return _loads(span)


def parse_sanitized(text: str) -> Optional[Any]:
    """4. Strip control characters and trailing commas, then parse."""

    candidate = sanitize(best_effort_substring(text))
    parsed = _loads(candidate)
    if parsed is not None:
        return parsed
    span = _balanced_span(candidate)
    return _loads(span) if span else None


def recover_truncated(text: str) -> Optional[Any]:
    """5. Close the brackets a length-limited response never got to write.

    The full fragment is tried first. When the cut falls inside a key or a
    value, the fragment is shortened to earlier closing brackets until the
    remainder parses.
    """

    fragment = sanitize(best_effort_substring(text))
    if _first_opening(fragment) != 0:
        return None

    closed = _close(fragment)
    if closed is not None:
        parsed = _loads(closed)
        if parsed is not None:
            return parsed

    _, _, close_points = _scan(fragment)
    for cut in reversed(close_points[-MAX_RECOVERY_ATTEMPTS:]):
        closed = _close(fragment[:cut])
        if closed is None:
            continue
        parsed = _loads(closed)
        if parsed is not None:
            return parsed
    return None


DEFAULT_STRATEGIES: Tuple[Tuple[str, Strategy], ...] = (
    ("direct", parse_direct),
    ("fenced", parse_fenced),
    ("balanced", parse_balanced),
    ("sanitized", parse_sanitized),
    ("truncation", recover_truncated),
)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DecodedPresentation:
    """A payload that passed the minimal shape check."""

    title: str
    description: Optional[str]
    slides: List[Dict[str, Any]]
    strategy: str
    raw: Dict[str, Any] = field(repr=False, default_factory=dict)


class ResilientDecoder:
    """Apply the strategy cascade and validate the result."""

    def __init__(self, strategies: Sequence[Tuple[str, Strategy]] = DEFAULT_STRATEGIES) -> None:
        self.strategies = tuple(strategies)

    def parse(self, text: Optional[str]) -> Tuple[Any, str]:
        """Return ``(data, strategy_name)`` or raise :class:`GenerationParseError`."""

        raw_text = text or ""
        for name, strategy in self.strategies:
            try:
                parsed = strategy(raw_text)
            except Exception:  # a strategy bug must not break the cascade
                LOGGER.exception("Decoder strategy '%s' raised", name)
                continue
            if parsed is not None:
                LOGGER.debug("Decoder strategy '%s' succeeded", name)
                return parsed, name
            LOGGER.debug("Decoder strategy '%s' did not match", name)
        raise GenerationParseError(
            "AI response could not be parsed by any strategy", raw_text=raw_text
        )

    def decode_presentation(self, text: Optional[str]) -> DecodedPresentation:
        data, strategy = self.parse(text)
        payload = _normalize_presentation_payload(data)
        slides = [item for item in payload.get("slides") or [] if isinstance(item, dict)]
        if not slides:
            raise SchemaValidationError(
                "AI response has no non-empty 'slides' array", payload=data
            )
        title = payload.get("title")
        description = payload.get("description")
        return DecodedPresentation(
            title=title.strip() if isinstance(title, str) else "",
            description=description if isinstance(description, str) else None,
            slides=slides,
            strategy=strategy,
            raw=payload,
        )

    def decode_object(self, text: Optional[str]) -> Tuple[Dict[str, Any], str]:
        """Decode any JSON object, used for single-slide edits."""

        data, strategy = self.parse(text)
        if isinstance(data, list):
            data = next((item for item in data if isinstance(item, dict)), None)
        if not isinstance(data, dict) or not data:
            raise SchemaValidationError("AI response is not a JSON object", payload=data)
        return data, strategy


def _normalize_presentation_payload(data: Any) -> Dict[str, Any]:
    if isinstance(data, list):
        return {"slides": data}
    if not isinstance(data, dict):
        return {}
    if not isinstance(data.get("slides"), list) and isinstance(data.get("presentation"), dict):
        return data["presentation"]
    return data


_DEFAULT_DECODER = ResilientDecoder()


def decode_presentation(text: Optional[str]) -> DecodedPresentation:
    return _DEFAULT_DECODER.decode_presentation(text)
