"""Unit tests for passage chunking (split_pages)."""
import pytest

from services.pdf_ingest.chunker import split_pages
from shared.models.document import PageText

LOREM = (
    "one two three four five six seven eight nine ten eleven twelve thirteen "
    "fourteen fifteen sixteen seventeen eighteen nineteen twenty"
)


@pytest.mark.unit
class TestSplitPages:
    """Passages are bounded, ordered and deterministic."""

    def test_short_pages_yield_one_passage_each(self):
        pages = [PageText(page_number=1, text="Alpha Beta Gamma."), PageText(page_number=2, text="Delta Epsilon.")]

        passages = split_pages(pages, doc_id="doc-1", max_chunk_chars=20, overlap_chars=0)

        assert [p.text for p in passages] == ["Alpha Beta Gamma.", "Delta Epsilon."]
        assert [p.metadata.page_number for p in passages] == [1, 2]
        assert [p.metadata.ordinal for p in passages] == [0, 1]
        assert all(p.metadata.doc_id == "doc-1" for p in passages)

    def test_empty_pages_yield_no_passages(self):
        pages = [PageText(page_number=1, text=""), PageText(page_number=2, text="   \n  ")]

        assert split_pages(pages, doc_id="doc-1", max_chunk_chars=100, overlap_chars=10) == []

    def test_blank_page_keeps_following_page_numbers(self):
        pages = [
            PageText(page_number=1, text="First page."),
            PageText(page_number=2, text=""),
            PageText(page_number=3, text="Third page."),
        ]

        passages = split_pages(pages, doc_id="doc-1", max_chunk_chars=100, overlap_chars=0)

        assert [p.metadata.page_number for p in passages] == [1, 3]
        assert [p.metadata.ordinal for p in passages] == [0, 1]

    def test_passages_never_exceed_max_chunk_chars(self):
        pages = [PageText(page_number=1, text=LOREM), PageText(page_number=2, text="x" * 95)]

        passages = split_pages(pages, doc_id="doc-1", max_chunk_chars=20, overlap_chars=5)

        assert len(passages) > 2
        assert all(0 < len(p.text) <= 20 for p in passages)
        assert [p.metadata.ordinal for p in passages] == list(range(len(passages)))

    def test_consecutive_passages_of_a_page_overlap(self):
        pages = [PageText(page_number=1, text=LOREM)]

        passages = split_pages(pages, doc_id="doc-1", max_chunk_chars=20, overlap_chars=10)

        assert len(passages) >= 2
        first_word_of_second = passages[1].text.split()[0]
        assert first_word_of_second in passages[0].text.split()

    def test_split_is_deterministic(self):
        pages = [PageText(page_number=1, text=LOREM), PageText(page_number=2, text="Delta Epsilon.")]

        first = split_pages(pages, doc_id="doc-1", max_chunk_chars=30, overlap_chars=8)
        second = split_pages(pages, doc_id="doc-1", max_chunk_chars=30, overlap_chars=8)

        assert first == second

    @pytest.mark.parametrize("size,overlap", [(0, 0), (10, 10), (10, 15), (10, -1)])
    def test_invalid_configuration_raises(self, size, overlap):
        pages = [PageText(page_number=1, text="text")]

        with pytest.raises(ValueError):
            split_pages(pages, doc_id="doc-1", max_chunk_chars=size, overlap_chars=overlap)
