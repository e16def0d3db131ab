"""
Merge ordered transcript fragments into a single text.
Handles repeated words at chunk boundaries.
"""

import logging

logger = logging.getLogger(__name__)


def dedupe_overlap(text_a: str, text_b: str, overlap_words: int = 30) -> str:
    """
    Join two consecutive fragments, dropping words at the start of text_b
    that repeat the end of text_a.
    """
    if not text_a or not text_b:
        return ((text_a or '') + '\n\n' + (text_b or '')).strip()

    words_a = text_a.split()
    words_b = text_b.split()

    if not words_a or not words_b:
        return text_a + '\n\n' + text_b

    check_len = min(overlap_words, len(words_a), len(words_b))

    best_overlap = 0
    for i in range(check_len, 0, -1):
        if words_a[-i:] == words_b[:i]:
            best_overlap = i
            break

    if best_overlap > 3:  # Only dedupe if meaningful overlap found
        merged = text_a.rstrip() + ' ' + ' '.join(words_b[best_overlap:])
        logger.debug("Deduped %d overlapping words at boundary", best_overlap)
    else:
        merged = text_a.rstrip() + '\n\n' + text_b.lstrip()

    return merged


def merge_transcripts(texts: list[str]) -> str:
    """Merge fragment texts in order."""
    texts = [t for t in texts if t and t.strip()]
    if not texts:
        return ""
    if len(texts) == 1:
        return texts[0].strip()

    result = texts[0]
    for text in texts[1:]:
        result = dedupe_overlap(result, text)

    return result.strip()
