from __future__ import annotations

from dataclasses import dataclass

from textaudit.utils.text import clamp, sentences, words


@dataclass
class TextMetrics:
    readability: dict[str, float]
    word_count: int
    sentence_count: int
    syllable_count: int
    estimated_read_time: float


def _syllables(word: str) -> int:
    vowels = "aeiouy"
    w = word.lower().strip()
    if not w:
        return 1
    count = 0
    prev = False
    for ch in w:
        is_vowel = ch in vowels
        if is_vowel and not prev:
            count += 1
        prev = is_vowel
    if w.endswith("e") and count > 1:
        count -= 1
    return max(1, count)


def compute_metrics(text: str) -> TextMetrics:
    sent = sentences(text)
    toks = words(text)

    wc = len(toks)
    sc = max(1, len(sent))
    syllable_count = sum(_syllables(token) for token in toks)

    asl = wc / sc
    asw = syllable_count / max(1, wc)

    if wc:
        flesch = 206.835 - (1.015 * asl) - (84.6 * asw)
        grade = (0.39 * asl) + (11.8 * asw) - 15.59
    else:
        flesch = 0.0
        grade = 0.0

    return TextMetrics(
        readability={
            "flesch_reading_ease": round(clamp(flesch, 0.0, 100.0), 2),
            "flesch_kincaid_grade": round(clamp(grade, 0.0, 18.0), 2),
        },
        word_count=wc,
        sentence_count=sc,
        syllable_count=syllable_count,
        estimated_read_time=round(wc / 230.0, 2),
    )


def flesch_reading_ease(text: str) -> float:
    """Flesch reading ease clamped to [0, 100]; text without words scores 0."""
    return compute_metrics(text).readability["flesch_reading_ease"]
