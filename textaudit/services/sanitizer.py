"""Best-effort repair of near-JSON completion output."""

from __future__ import annotations

import re

_FENCE_OPEN_RE = re.compile(r"^\s*```[\w-]*[ \t]*\n?")
_FENCE_CLOSE_RE = re.compile(r"\n?[ \t]*```\s*$")
_CLOSER_AHEAD_RE = re.compile(r"\s*[\]}]")


def strip_code_fences(raw: str) -> str:
    previous = None
    out = raw
    while out != previous:
        previous = out
        out = _FENCE_OPEN_RE.sub("", out, count=1)
        out = _FENCE_CLOSE_RE.sub("", out, count=1)
    return out


def trim_to_object(raw: str) -> str:
    start = raw.find("{")
    end = raw.rfind("}")
    if start == -1 or end < start:
        return raw
    return raw[start : end + 1]


def _drop_trailing_commas_once(raw: str) -> str:
    out = []
    in_string = False
    escaped = False
    for index, ch in enumerate(raw):
        if in_string:
            out.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "," and _CLOSER_AHEAD_RE.match(raw, index + 1):
            continue
        out.append(ch)
    return "".join(out)


def remove_trailing_commas(raw: str) -> str:
    """Drop commas directly before ``]`` or ``}``, leaving string literals untouched."""
    # Repeat until stable: ",,}" needs more than one pass.
    previous = None
    out = raw
    while out != previous:
        previous = out
        out = _drop_trailing_commas_once(out)
    return out


def sanitize(raw: str | None) -> str:
    if not raw:
        return ""
    out = strip_code_fences(raw.strip())
    out = trim_to_object(out)
    out = remove_trailing_commas(out)
    return out.strip()
