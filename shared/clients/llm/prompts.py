"""Chat message builders for answer generation and history-aware query rewriting.

Messages use the OpenAI role format ({"role": ..., "content": ...}); human and
ai chat turns map to "user" and "assistant".
"""

from shared.models.chat import ChatTurn, sort_history

ANSWER_SYSTEM_PROMPT = (
    "You answer questions about a PDF document. "
    "Use only the document excerpts below. If they do not contain the answer, say so plainly.\n\n"
    "Document excerpts:\n{context}"
)

REWRITE_INSTRUCTION = (
    "Given the conversation above, rewrite the follow-up question below into a standalone "
    "search query that can be understood without the conversation. "
    "Reply with the search query only.\n\n"
    "Follow-up question: {question}"
)

_ROLE_MAP = {"human": "user", "ai": "assistant"}


def history_to_messages(history: list[ChatTurn] | None) -> list[dict]:
    """Convert chat turns, in created_at order, into chat messages."""
    return [{"role": _ROLE_MAP[turn.role], "content": turn.text} for turn in sort_history(history)]


def build_answer_messages(context: str, question: str, history: list[ChatTurn] | None = None) -> list[dict]:
    """System prompt with the context, then the history, then the question."""
    return [
        {"role": "system", "content": ANSWER_SYSTEM_PROMPT.format(context=context)},
        *history_to_messages(history),
        {"role": "user", "content": question},
    ]


def build_rewrite_messages(question: str, history: list[ChatTurn]) -> list[dict]:
    """The history followed by the rewrite instruction."""
    return [
        *history_to_messages(history),
        {"role": "user", "content": REWRITE_INSTRUCTION.format(question=question)},
    ]
