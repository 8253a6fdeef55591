"""Models for content detected in a document.

Defines the non-owning node handle, the classification triple and the detected item
produced by the content scanner for one scan cycle.
"""

from __future__ import annotations

import weakref
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal, TypeAlias

if TYPE_CHECKING:
    from bs4 import Tag

__all__: list[str] = [
    "ContentAnalysis",
    "ContentType",
    "DetectedItem",
    "Importance",
    "NodeRef",
    "TranslationType",
]

ContentType: TypeAlias = Literal["heading", "button", "navigation", "paragraph", "form", "general"]
Importance: TypeAlias = Literal["high", "medium", "low"]
TranslationType: TypeAlias = Literal["marketing", "technical", "cultural", "standard"]


@dataclass(frozen=True)
class NodeRef:
    """Non-owning handle to a text or attribute slot of a document element.

    Only a weak reference to the owning element is held, so a detected item never keeps
    a removed element alive. Text nodes themselves cannot be weakly referenced, so a text
    slot is addressed by its position among the element's children together with the
    text captured at scan time.

    Attributes:
        element (weakref.ReferenceType[Tag]): Weak reference to the owning element.
        captured (str): Raw text (attribute value or text node) at scan time.
        attribute (str | None): Attribute name, or None for a text node.
        index (int): Position of the text node in ``element.contents`` at scan time.
    """

    element: weakref.ReferenceType[Tag]
    captured: str
    attribute: str | None = None
    index: int = 0

    @classmethod
    def for_text(cls, element: Tag, index: int, captured: str) -> NodeRef:
        return cls(element=weakref.ref(element), captured=captured, index=index)

    @classmethod
    def for_attribute(cls, element: Tag, attribute: str, captured: str) -> NodeRef:
        return cls(element=weakref.ref(element), captured=captured, attribute=attribute)

    def resolve(self) -> Tag | None:
        """Return the owning element, or None if it has been garbage collected."""
        return self.element()


@dataclass(frozen=True)
class ContentAnalysis:
    """Classification of a detected text.

    Attributes:
        type (ContentType): Structural kind of the content.
        importance (Importance): Processing priority.
        translation_type (TranslationType): Register hint passed to the provider.
        context (str): Short description of where the text lives.
    """

    type: ContentType = "general"
    importance: Importance = "medium"
    translation_type: TranslationType = "standard"
    context: str = ""


@dataclass
class DetectedItem:
    """Translatable text found by one scan.

    Attributes:
        text (str): Trimmed text to translate.
        node (NodeRef): Handle to the slot the text came from.
        attribute (str | None): Attribute name for attribute items.
        context (str): Context hint, mirrors ``analysis.context``.
        namespace (str): Page region: nav, hero, footer, features, pricing or common.
        xpath (str): Locator of the owning element, for logging and diagnostics.
        analysis (ContentAnalysis): Classification result.
    """

    text: str
    node: NodeRef
    attribute: str | None = None
    context: str = ""
    namespace: str = "common"
    xpath: str = ""
    analysis: ContentAnalysis = field(default_factory=ContentAnalysis)
