import json
import re

_WORD_RE = re.compile(r"\b[\w']+\b", flags=re.UNICODE)
_SENTENCE_RE = re.compile(r"[^.!?]+[.!?]*")


def words(text: str) -> list[str]:
    return _WORD_RE.findall(text.lower())


def sentences(text: str) -> list[str]:
    return [chunk.strip() for chunk in _SENTENCE_RE.findall(text) if any(ch.isalnum() for ch in chunk)]


def word_count(text: str) -> int:
    return len(text.split())


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def quote_for_prompt(text: str) -> str:
    # JSON string literal: quotes, backslashes and newlines are escaped.
    return json.dumps(text, ensure_ascii=False)


def truncate(text: str, max_chars: int) -> str:
    if max_chars <= 0 or len(text) <= max_chars:
        return text
    return text[:max_chars]
