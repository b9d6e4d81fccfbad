"""
Pull a JSON payload (or a plain-text answer) out of free-form model output.

Models wrap JSON in Markdown fences, put prose before and after it, emit raw
newlines inside string values and stop mid-object when they hit the token
limit. Everything here is best-effort and never raises; callers only see a
canonical JSON string or ``None``. The repair heuristics are kept behind
``extract_json`` so they can be replaced by a partial-JSON parser later.
"""
from __future__ import annotations

import json
import re
from typing import Any, List, Optional, Tuple

import structlog

logger = structlog.get_logger()

FENCED_BLOCK_RE = re.compile(r"```[ \t]*(?:json|JSON)?[ \t]*\r?\n?(.*?)```", re.DOTALL)
OPEN_FENCE_RE = re.compile(r"^\s*```[ \t]*(?:json|JSON)?[ \t]*\r?\n?")
WRAPPING_FENCE_RE = re.compile(r"^```[\w-]*[ \t]*\r?\n(.*?)\r?\n?```$", re.DOTALL)
TEXT_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")
C1_CONTROL_RE = re.compile(r"[\x7f-\x9f]")

PAIRS = {"{": "}", "[": "]"}
OPEN_BRACKET_RE = re.compile(r"[{\[]")
ESCAPED_CONTROLS = {"\n": "\\n", "\t": "\\t", "\r": "\\r"}

# How many opening brackets to try before giving up on a response
MAX_CANDIDATES = 10
# How far back the truncation repair walks before giving up
MAX_REPAIR_POINTS = 50

_INVALID = object()


def _is_control(ch: str) -> bool:
    code = ord(ch)
    return code < 0x20 or 0x7F <= code <= 0x9F


def strip_code_fences(text: str) -> str:
    match = FENCED_BLOCK_RE.search(text)
    if match and ("{" in match.group(1) or "[" in match.group(1)):
        return match.group(1)
    # Unterminated fence: the response was cut off before the closing ```
    return OPEN_FENCE_RE.sub("", text).replace("```", "")


def sanitize_json_text(text: str) -> str:
    """Escape raw newlines/tabs inside strings, drop other control characters
    and trailing commas before a closing bracket."""
    out: List[str] = []
    in_string = False
    escaped = False
    for ch in text:
        if in_string:
            if escaped:
                escaped = False
                if _is_control(ch):
                    # backslash followed by a raw control char
                    out.append(ESCAPED_CONTROLS.get(ch, "\\u0020")[1:])
                else:
                    out.append(ch)
                continue
            if ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            elif ch in ESCAPED_CONTROLS:
                out.append(ESCAPED_CONTROLS[ch])
                continue
            elif _is_control(ch):
                continue
            out.append(ch)
            continue

        if ch == '"':
            in_string = True
        elif ch in "}]":
            j = len(out) - 1
            while j >= 0 and out[j] in " \t\r\n":
                j -= 1
            if j >= 0 and out[j] == ",":
                del out[j]
        elif ch not in " \t\r\n" and _is_control(ch):
            continue
        out.append(ch)
    return "".join(out)


# An open bracket: (kind, position), so two containers never compare equal
Opener = Tuple[str, int]


def _scan(text: str, start: int) -> Tuple[Optional[int], List[Tuple[int, Tuple[Opener, ...]]], Tuple[Opener, ...], bool]:
    """Walk from ``start`` matching brackets outside of strings.

    Returns ``(end, safe_points, open_stack, broken)``: the index of the
    bracket that closes ``text[start]`` (or None when the input ends first),
    the positions right after every element that closed inside a still-open
    container together with the open-bracket stack at that point, the stack
    left open when the input ran out, and whether a mismatched closer was met.
    """
    stack: List[Opener] = []
    safe_points: List[Tuple[int, Tuple[Opener, ...]]] = []
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in PAIRS:
            stack.append((ch, i))
        elif ch in "}]":
            if not stack or PAIRS[stack[-1][0]] != ch:
                return None, safe_points, tuple(stack), True
            stack.pop()
            if not stack:
                return i, safe_points, (), False
            safe_points.append((i + 1, tuple(stack)))
    return None, safe_points, tuple(stack), False


def _loads(candidate: str) -> Any:
    try:
        return json.loads(candidate)
    except (ValueError, RecursionError):
        return _INVALID


def _dump(value: Any) -> str:
    text = json.dumps(value, ensure_ascii=False)
    # C1 controls survive ensure_ascii=False; keep them escaped so a second pass is a no-op
    return C1_CONTROL_RE.sub(lambda m: "\\u%04x" % ord(m.group()), text)


def _is_clean_cut(stack: Tuple[Opener, ...], open_stack: Tuple[Opener, ...]) -> bool:
    """A cut may only re-close the truncated element's ancestors, and below
    the outermost container those must all be arrays; re-closing a nested
    object would keep it with members missing."""
    if stack != open_stack[:len(stack)]:
        return False
    return all(kind == "[" for kind, _ in stack[1:])


def _repair(text: str, start: int, safe_points, open_stack: Tuple[Opener, ...]) -> Any:
    """Cut a truncated payload back to its last complete element and re-close it."""
    cuts = [(cut, stack) for cut, stack in safe_points if _is_clean_cut(stack, open_stack)]
    for cut, stack in reversed(cuts[-MAX_REPAIR_POINTS:]):
        closers = "".join(PAIRS[kind] for kind, _ in reversed(stack))
        value = _loads(text[start:cut] + closers)
        if value is not _INVALID and value:
            logger.info("json_truncation_repaired", kept_chars=cut - start, closed=len(stack))
            return value
    return _INVALID


def _is_structured(value: Any) -> bool:
    if isinstance(value, dict):
        return True
    return isinstance(value, list) and bool(value) and all(isinstance(item, dict) for item in value)


def extract_json(raw: Optional[str]) -> Optional[str]:
    """Locate and repair the JSON payload inside ``raw``.

    Every bracket-balanced span that parses is a candidate. Objects and
    lists of objects beat other values, then the widest span wins, so a
    citation like ``[1]`` in leading prose never hides the payload.
    Returns canonical JSON text, or None when nothing usable is found.
    """
    if not raw or not raw.strip():
        return None

    text = sanitize_json_text(strip_code_fences(raw))
    found: List[Tuple[Any, int]] = []
    pos = 0
    for _ in range(MAX_CANDIDATES):
        match = OPEN_BRACKET_RE.search(text, pos)
        if not match:
            break
        start = match.start()
        end, safe_points, open_stack, broken = _scan(text, start)
        if broken:
            pos = start + 1
            continue
        if end is None:
            # Everything after this bracket is part of the truncated payload
            value = _repair(text, start, safe_points, open_stack)
            if value is not _INVALID:
                found.append((value, len(text) - start))
            break
        value = _loads(text[start:end + 1])
        if value is _INVALID:
            pos = start + 1
            continue
        found.append((value, end + 1 - start))
        pos = end + 1

    if not found:
        logger.info("json_not_found", length=len(raw))
        return None
    value, _ = max(found, key=lambda item: (_is_structured(item[0]), item[1]))
    return _dump(value)


def parse_json(raw: Optional[str]) -> Any:
    """Decoded payload of ``raw``, or None."""
    extracted = extract_json(raw)
    if extracted is None:
        return None
    return json.loads(extracted)


def extract_text(raw: Optional[str]) -> Optional[str]:
    """Plain-text answer: unwrap a response-wide code fence and drop control characters."""
    text = (raw or "").strip()
    match = WRAPPING_FENCE_RE.match(text)
    if match:
        text = match.group(1).strip()
    text = TEXT_CONTROL_RE.sub("", text).strip()
    return text or None
