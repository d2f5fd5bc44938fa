# src/aichat/core/classifier.py
import re
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from aichat.config import (
    GENERAL_KNOWLEDGE_PHRASES,
    PHRASE_SET_VERSION,
    PROJECT_KEYWORDS,
    PROJECT_REFERENCE_PHRASES,
)
from aichat.models import Relevance


@dataclass(frozen=True)
class PhraseSets:
    version: str
    general_knowledge: Tuple[str, ...]
    project_reference: Tuple[str, ...]
    project_keywords: Tuple[str, ...]


DEFAULT_PHRASES = PhraseSets(
    version=PHRASE_SET_VERSION,
    general_knowledge=GENERAL_KNOWLEDGE_PHRASES,
    project_reference=PROJECT_REFERENCE_PHRASES,
    project_keywords=PROJECT_KEYWORDS,
)


def _compile(phrases: Tuple[str, ...]) -> Optional[re.Pattern]:
    """
    One alternation per phrase set. A phrase must start at a word boundary
    but may run into a longer word: "fix" matches "fixing", while "define"
    does not match "undefined".
    """
    if not phrases:
        return None
    alternatives = "|".join(re.escape(p.lower()) for p in phrases)
    return re.compile(rf"(?<!\w)(?:{alternatives})")


def _contains_any(text: str, pattern: Optional[re.Pattern]) -> bool:
    return pattern is not None and pattern.search(text) is not None


class RelevanceClassifier:
    """
    Decides whether a message needs the project's files attached.

    Checks run in a fixed order and the first match wins:
    1. a general-knowledge phrase -> GENERAL_KNOWLEDGE, even if project
       phrases are present too
    2. a project-reference phrase -> PROJECT_SPECIFIC
    3. a project keyword and at least one eligible file -> PROJECT_SPECIFIC
    4. otherwise GENERAL_KNOWLEDGE

    `has_eligible_files` is only called for step 3.
    """

    def __init__(self, phrases: PhraseSets = DEFAULT_PHRASES):
        self.phrases = phrases
        self._general = _compile(phrases.general_knowledge)
        self._reference = _compile(phrases.project_reference)
        self._keywords = _compile(phrases.project_keywords)

    def classify(self, message: str, has_eligible_files: Callable[[], bool]) -> Relevance:
        text = message.lower()

        if _contains_any(text, self._general):
            return Relevance.GENERAL_KNOWLEDGE

        if _contains_any(text, self._reference):
            return Relevance.PROJECT_SPECIFIC

        if _contains_any(text, self._keywords) and has_eligible_files():
            return Relevance.PROJECT_SPECIFIC

        return Relevance.GENERAL_KNOWLEDGE

    def is_project_related(self, message: str, has_eligible_files: Callable[[], bool]) -> bool:
        return self.classify(message, has_eligible_files) is Relevance.PROJECT_SPECIFIC
