"""Pydantic models for indexable document units.

Models:
    - Document: One unit of text headed for a retrieval index
    - Topic: Named keyword group used to keep only relevant content
"""

from pydantic import BaseModel, Field


class Document(BaseModel):
    """A single indexable unit of text.

    Attributes:
        content: Text of the unit, e.g. a table context sentence.
        page: 1-based page the content came from.
    """

    content: str = Field(..., description="Text content of the document")
    page: int = Field(..., ge=1, description="Page number the content was extracted from")

    def sanitize(self) -> "Document":
        """Return a copy with whitespace runs collapsed to single spaces."""
        return self.model_copy(update={"content": " ".join(self.content.split())})


class Topic(BaseModel):
    """A named group of keywords.

    Attributes:
        name: Topic identifier used in logs.
        keywords: Phrases that mark content as relevant, matched case-insensitively.
    """

    name: str = Field("", description="Topic name")
    keywords: list[str] = Field(default_factory=list, description="Keywords to look for")

    def matches(self, content: str) -> bool:
        """Check whether any keyword occurs in the content."""
        lowered = content.lower()
        return any(keyword and keyword.lower() in lowered for keyword in self.keywords)


def find_relevant_topic(content: str, topics: list[Topic]) -> Topic | None:
    """Return the first topic matching the content, or None."""
    for topic in topics:
        if topic.matches(content):
            return topic
    return None
