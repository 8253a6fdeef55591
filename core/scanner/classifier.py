"""Importance and register classification of detected text."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar, Final

from models.content_models import ContentAnalysis
from models.re_models import CULTURAL_PATTERN, TECHNICAL_PATTERN
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from bs4 import Tag

    from models.content_models import ContentType, Importance, TranslationType

__all__: list[str] = ["ContentClassifier", "class_string"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

LONG_PARAGRAPH_LENGTH: Final[int] = 100
CACHE_TEXT_PREFIX: Final[int] = 50

FORM_TAGS: Final[frozenset[str]] = frozenset({"label", "input", "textarea", "select", "option"})


def class_string(element: Tag) -> str:
    """Return an element's class attribute as one lower-case string."""
    value = element.get("class")
    if isinstance(value, list):
        return " ".join(value).lower()
    return (value or "").lower()


class ContentClassifier:
    """Classifies an element's text into a ``{type, importance, translation_type}`` triple.

    Rules apply in three passes:

    1. Structure: headings, buttons, navigation, long paragraphs and form controls.
    2. Context escalation: hero or call-to-action surroundings raise importance to high and
       switch to marketing copy; footer surroundings lower importance.
    3. Content override: technical tokens force the technical register, cultural keywords
       the cultural one.

    Results are cached by ``tag-class-text[:50]``, so structurally identical nodes placed in
    different surroundings share the first classification computed.
    """

    HEADING_IMPORTANCE: ClassVar[dict[str, Importance]] = {
        "h1": "high",
        "h2": "high",
        "h3": "medium",
        "h4": "medium",
        "h5": "medium",
        "h6": "medium",
    }

    def __init__(self) -> None:
        self._cache: dict[str, ContentAnalysis] = {}

    def __len__(self) -> int:
        return len(self._cache)

    def clear(self) -> None:
        self._cache.clear()

    @staticmethod
    def cache_key(element: Tag, text: str) -> str:
        return f"{element.name}-{class_string(element)}-{text[:CACHE_TEXT_PREFIX]}"

    def classify(self, element: Tag, text: str) -> ContentAnalysis:
        """Classify the text owned by an element.

        Args:
            element (Tag): Element owning the text (or the attribute).
            text (str): Trimmed text.

        Returns:
            ContentAnalysis: The classification.
        """
        key: str = self.cache_key(element, text)
        cached: ContentAnalysis | None = self._cache.get(key)
        if cached is not None:
            return cached

        analysis: ContentAnalysis = self._analyze(element, text)
        self._cache[key] = analysis
        return analysis

    def _analyze(self, element: Tag, text: str) -> ContentAnalysis:
        tag: str = (element.name or "").lower()
        classes: str = class_string(element)

        content_type: ContentType = "general"
        importance: Importance = "medium"
        translation_type: TranslationType = "standard"
        context: str = "general content"

        if tag in self.HEADING_IMPORTANCE:
            content_type, importance, translation_type = "heading", self.HEADING_IMPORTANCE[tag], "marketing"
            context = f"{tag} heading element"
        elif tag == "button" or "btn" in classes or element.get("role") == "button":
            content_type, importance, translation_type = "button", "high", "marketing"
            context = "interactive button element"
        elif tag == "nav" or "nav" in classes or "menu" in classes or self._inside_navigation(element):
            content_type, importance, translation_type = "navigation", "high", "standard"
            context = "navigation menu"
        elif tag == "p" and len(text) > LONG_PARAGRAPH_LENGTH:
            content_type, importance, translation_type = "paragraph", "medium", "cultural"
            context = "descriptive paragraph"
        elif tag in FORM_TAGS:
            content_type, importance, translation_type = "form", "medium", "standard"
            context = "form element"

        surroundings: str = " ".join([classes, *(class_string(parent) for parent in self._ancestors(element))])
        if "hero" in surroundings:
            importance, translation_type = "high", "marketing"
            context += ", hero section"
        elif "cta" in surroundings:
            importance, translation_type = "high", "marketing"
            context += ", call-to-action"
        elif "footer" in surroundings or any(parent.name == "footer" for parent in self._ancestors(element)):
            importance = "low"
            context += ", footer area"

        if TECHNICAL_PATTERN.search(text):
            translation_type = "technical"
        elif CULTURAL_PATTERN.search(text):
            translation_type = "cultural"

        return ContentAnalysis(
            type=content_type,
            importance=importance,
            translation_type=translation_type,
            context=context,
        )

    @staticmethod
    def _ancestors(element: Tag) -> list[Tag]:
        # the BeautifulSoup object itself is the top "[document]" parent
        return [parent for parent in element.parents if parent.name != "[document]"]

    def _inside_navigation(self, element: Tag) -> bool:
        return any(
            parent.name == "nav" or parent.get("role") == "navigation" for parent in self._ancestors(element)
        )
