"""Context assembly: greedy prefix-fill of retrieved passages into a bounded string."""

from shared.models.search import RetrievalHit


def assemble_context(hits: list[RetrievalHit], max_context_chars: int, separator: str = "\n\n") -> str:
    """Concatenate passage texts in descending-similarity order, each followed by the separator.

    Stops before the first passage that would push the accumulated length over
    max_context_chars; passages are never cut. The result is at most
    max_context_chars plus one separator long.

    Args:
        hits: Retrieval hits, any order; re-sorted by score (stable).
        max_context_chars: Character budget for passage text.
        separator: Appended after every included passage.

    Returns:
        str: The context, empty for an empty result or an oversized first passage.
    """
    ordered = sorted(hits, key=lambda hit: hit.score, reverse=True)
    parts: list[str] = []
    length = 0
    for hit in ordered:
        text = hit.passage.text
        if length + len(text) > max_context_chars:
            break
        parts.append(text + separator)
        length += len(text) + len(separator)
    return "".join(parts)
