"""Sentence segmentation of extracted page text.

Uses a blank English spaCy pipeline with a rule-based sentencizer, so no
trained model has to be downloaded. Line breaks inside a sentence are kept,
since table reconstruction works line by line.
"""

import logging

import spacy
from spacy.language import Language

logger = logging.getLogger(__name__)

_NLP: Language | None = None


def _get_nlp() -> Language:
    """Return the shared sentence pipeline, building it on first use."""
    global _NLP
    if _NLP is None:
        _NLP = spacy.blank("en")
        _NLP.add_pipe("sentencizer")
        logger.debug("Loaded spaCy sentencizer pipeline")
    return _NLP


def split_sentences(text: str) -> list[str]:
    """Split text into sentences.

    Args:
        text: Page text, possibly spanning many lines.

    Returns:
        Non-blank sentences in reading order, with surrounding whitespace
        removed and inner line breaks preserved.
    """
    if not text.strip():
        return []
    doc = _get_nlp()(text)
    return [sentence.text.strip() for sentence in doc.sents if sentence.text.strip()]
