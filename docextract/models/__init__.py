"""Pydantic models for extracted documents.

Models:
    - Document: Indexable unit of text with its page number
    - Topic: Keyword group for relevance filtering
"""

from docextract.models.schemas import Document, Topic, find_relevant_topic

__all__ = ["Document", "Topic", "find_relevant_topic"]
