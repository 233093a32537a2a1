"""Simple vs. complex query routing for the chat orchestrator."""

from dataclasses import dataclass

# Substring match on the lowercased message; "vs" also hits words like "tvs".
COMPLEX_KEYWORDS = ("compare", "vs", "book", "reserve")


@dataclass(frozen=True)
class QueryClassification:
    simple: bool


def classify_query(message: str) -> QueryClassification:
    """A query is complex when it mentions comparing, booking or reserving."""
    text = message.lower()
    return QueryClassification(simple=not any(k in text for k in COMPLEX_KEYWORDS))
