"""Transcript matching against the words on a card.

Multi-word phrases match as substrings of the normalized transcript, single
words only on word boundaries, so ``stand`` never fires on ``outstanding``.
Aliases are looser: any alias appearing as a substring counts, which absorbs
transcription noise such as ``stand up`` for ``standup``.
"""

from __future__ import annotations
import re
from typing import Iterable, List, Mapping, Optional, Sequence

from .lexicon import service as lexicon

_QUOTES = str.maketrans({
    '‘': "'",
    '’': "'",
    '“': '"',
    '”': '"',
})


def normalize(text: str) -> str:
    return text.lower().translate(_QUOTES).strip()


def _matches(normalized_transcript: str, word: str) -> bool:
    normalized_word = normalize(word)
    if not normalized_word:
        return False
    if ' ' in normalized_word:
        return normalized_word in normalized_transcript
    pattern = rf"\b{re.escape(normalized_word)}\b"
    return re.search(pattern, normalized_transcript, re.IGNORECASE) is not None


def detect(
    transcript: str,
    candidate_words: Sequence[str],
    already_filled: Iterable[str] = (),
) -> List[str]:
    """Return the candidates spoken in ``transcript``, in candidate order.

    ``already_filled`` holds lowercase words that must never match again.
    """
    normalized_transcript = normalize(transcript)
    filled = set(already_filled)
    detected: List[str] = []
    seen = set()

    for word in candidate_words:
        key = word.lower()
        if key in filled or key in seen:
            continue
        if _matches(normalized_transcript, word):
            detected.append(word)
            seen.add(key)

    return detected


def detect_with_aliases(
    transcript: str,
    candidate_words: Sequence[str],
    already_filled: Iterable[str] = (),
    aliases: Optional[Mapping[str, Sequence[str]]] = None,
) -> List[str]:
    filled = set(already_filled)
    table = lexicon.aliases if aliases is None else aliases
    matched = {w.lower() for w in detect(transcript, candidate_words, filled)}
    normalized_transcript = normalize(transcript)

    for word in candidate_words:
        key = word.lower()
        if key in filled or key in matched:
            continue
        for alias in table.get(key, ()):
            normalized_alias = normalize(alias)
            if normalized_alias and normalized_alias in normalized_transcript:
                matched.add(key)
                break

    detected: List[str] = []
    for word in candidate_words:
        key = word.lower()
        if key in matched:
            detected.append(word)
            matched.discard(key)
    return detected
