"""Passage chunking.

Splits page text into overlapping passages with a recursive strategy:
paragraph boundaries first, then lines, sentences, words and finally single
characters, so no passage exceeds the configured size. Deterministic for a
given input and configuration.
"""

from langchain_text_splitters import RecursiveCharacterTextSplitter

from shared.models.document import PageText, Passage, PassageMetadata

SEPARATORS = ["\n\n", "\n", ". ", " ", ""]


def build_splitter(max_chunk_chars: int, overlap_chars: int) -> RecursiveCharacterTextSplitter:
    return RecursiveCharacterTextSplitter(
        chunk_size=max_chunk_chars,
        chunk_overlap=overlap_chars,
        separators=SEPARATORS,
        keep_separator="end",
        length_function=len,
        strip_whitespace=True,
    )


def split_pages(
    pages: list[PageText],
    doc_id: str,
    max_chunk_chars: int,
    overlap_chars: int,
) -> list[Passage]:
    """Split pages into passages.

    Overlap applies between consecutive passages of the same page only. A page
    shorter than max_chunk_chars yields one passage; an empty page yields none.

    Args:
        pages: Extracted pages in page order.
        doc_id: The owning document.
        max_chunk_chars: Maximum characters per passage.
        overlap_chars: Characters shared by consecutive passages of one page.

    Returns:
        list[Passage]: Passages with contiguous document-relative ordinals starting at 0.

    Raises:
        ValueError: If the size/overlap configuration is invalid.
    """
    if max_chunk_chars <= 0 or not 0 <= overlap_chars < max_chunk_chars:
        raise ValueError(
            f"Invalid chunking configuration: size={max_chunk_chars}, overlap={overlap_chars}."
        )
    splitter = build_splitter(max_chunk_chars, overlap_chars)

    passages: list[Passage] = []
    for page in pages:
        if not page.text.strip():
            continue
        for chunk in splitter.split_text(page.text):
            if not chunk.strip():
                continue
            passages.append(
                Passage(
                    text=chunk,
                    metadata=PassageMetadata(doc_id=doc_id, page_number=page.page_number, ordinal=len(passages)),
                )
            )
    return passages
