"""Content scanner.

Walks a parsed document to find translatable text nodes and attribute values, filters out
non-linguistic text, excluded regions and content this pipeline already translated, then
classifies what remains and orders it by importance.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from bs4 import NavigableString, Tag
from bs4.element import PreformattedString
from soupsieve import SelectorSyntaxError

from core.scanner.classifier import ContentClassifier, class_string
from handlers.dom_writer import TranslationLedger
from models.content_models import DetectedItem, NodeRef
from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Iterable

    from models.content_models import ContentAnalysis

__all__: list[str] = ["ContentScanner", "namespace_of", "xpath_of"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

DOCUMENT_NAME: str = "[document]"


def _lineage(element: Tag) -> list[Tag]:
    """The element followed by its ancestors, nearest first, excluding the document object."""
    return [node for node in [element, *element.parents] if node.name != DOCUMENT_NAME]


def namespace_of(element: Tag) -> str:
    """Page region an element belongs to: nav, hero, footer, features, pricing or common."""
    lineage: list[Tag] = _lineage(element)
    if any(node.name == "nav" or node.get("role") == "navigation" for node in lineage):
        return "nav"
    if any(node.name == "header" or "hero" in class_string(node).split() for node in lineage):
        return "hero"
    if any(node.name == "footer" for node in lineage):
        return "footer"
    if any("features" in class_string(node).split() for node in lineage):
        return "features"
    if any("pricing" in class_string(node).split() for node in lineage):
        return "pricing"
    return "common"


def xpath_of(element: Tag) -> str:
    """Locator of an element: ``//*[@id="..."]`` when it has an id, else a positional tag path.

    Same-name siblings are disambiguated with a 1-based index, e.g. ``/html/body/div/p[2]``.
    """
    element_id = element.get("id")
    if isinstance(element_id, str) and element_id:
        return f'//*[@id="{element_id}"]'

    parts: list[str] = []
    for node in _lineage(element):
        parent: Tag | None = node.parent
        part: str = node.name
        if parent is not None:
            same_name: list[Tag] = list(parent.find_all(node.name, recursive=False))
            if len(same_name) > 1:
                position: int = next(i for i, sibling in enumerate(same_name, start=1) if sibling is node)
                part = f"{node.name}[{position}]"
        parts.append(part)
    return "/" + "/".join(reversed(parts))


class ContentScanner:
    """Finds translatable content under a root element.

    A text node or attribute value is eligible when:

    - its trimmed text has at least ``min_length`` characters and is not purely numeric or
      punctuation, a URL or an ALL_CAPS constant;
    - its owning element is not a script, style, meta, title or noscript element;
    - it is not inside an excluded region (configured selectors, ``data-no-translate`` or
      ``translate="no"``);
    - it is not marked as translated, either by ``data-translated`` / ``data-i18n`` in the
      markup or by a ledger record whose written value is still displayed.

    Args:
        classifier (ContentClassifier | None): Classifier with its own result cache.
        ledger (TranslationLedger | None): Ledger shared with the DOM writer.
        min_length (int): Minimum trimmed text length.
        exclude_selectors (Iterable[str]): CSS selectors of excluded regions.
        attributes (Iterable[str]): Attribute allow-list.
        skip_tags (Iterable[str]): Elements whose text is never translated.
    """

    DEFAULT_EXCLUDE_SELECTORS: ClassVar[tuple[str, ...]] = (".no-translate", "[data-no-translate]")
    DEFAULT_ATTRIBUTES: ClassVar[tuple[str, ...]] = ("title", "alt", "placeholder", "aria-label", "data-tooltip")
    DEFAULT_SKIP_TAGS: ClassVar[tuple[str, ...]] = ("script", "style", "noscript", "meta", "title")
    TRANSLATED_MARKERS: ClassVar[tuple[str, ...]] = ("data-translated", "data-i18n")
    IMPORTANCE_ORDER: ClassVar[dict[str, int]] = {"high": 0, "medium": 1, "low": 2}

    def __init__(
        self,
        classifier: ContentClassifier | None = None,
        ledger: TranslationLedger | None = None,
        *,
        min_length: int = 3,
        exclude_selectors: Iterable[str] | None = None,
        attributes: Iterable[str] | None = None,
        skip_tags: Iterable[str] | None = None,
    ) -> None:
        self.classifier: ContentClassifier = classifier if classifier is not None else ContentClassifier()
        self.ledger: TranslationLedger = ledger if ledger is not None else TranslationLedger()
        self._min_length: int = min_length
        self._exclude_selectors: tuple[str, ...] = tuple(
            self.DEFAULT_EXCLUDE_SELECTORS if exclude_selectors is None else exclude_selectors
        )
        self._attributes: tuple[str, ...] = tuple(self.DEFAULT_ATTRIBUTES if attributes is None else attributes)
        self._skip_tags: frozenset[str] = frozenset(self.DEFAULT_SKIP_TAGS if skip_tags is None else skip_tags)

    def scan(self, root: Tag) -> list[DetectedItem]:
        """Scan a subtree.

        Args:
            root (Tag): Root element (or a whole ``BeautifulSoup`` document).

        Returns:
            list[DetectedItem]: Eligible items, high importance first, document order within a level.
        """
        excluded: set[int] = self._excluded_ids(root)
        memo: dict[int, bool] = {}
        items: list[DetectedItem] = []

        for node in root.descendants:
            if isinstance(node, Tag):
                items.extend(self._scan_attributes(node, excluded, memo))
                continue
            if not isinstance(node, NavigableString) or isinstance(node, PreformattedString):
                continue
            item: DetectedItem | None = self._scan_text(node, excluded, memo)
            if item is not None:
                items.append(item)

        if isinstance(root, Tag) and root.name != DOCUMENT_NAME:
            items[:0] = self._scan_attributes(root, excluded, memo)

        items.sort(key=lambda detected: self.IMPORTANCE_ORDER.get(detected.analysis.importance, 1))
        logger.debug("Scan found %d translatable item(s)", len(items))
        return items

    def _scan_text(self, node: NavigableString, excluded: set[int], memo: dict[int, bool]) -> DetectedItem | None:
        parent: Tag | None = node.parent
        if parent is None or parent.name in self._skip_tags:
            return None

        raw: str = str(node)
        text: str = raw.strip()
        if not StringUtils.is_linguistic(text, self._min_length):
            return None
        if self._is_excluded(parent, excluded, memo) or self._has_translated_marker(parent):
            return None

        index: int = next(i for i, child in enumerate(parent.contents) if child is node)
        if self.ledger.is_translated(parent, index, raw):
            return None

        return self._make_item(parent, text, NodeRef.for_text(parent, index, raw))

    def _scan_attributes(self, element: Tag, excluded: set[int], memo: dict[int, bool]) -> list[DetectedItem]:
        if element.name in self._skip_tags:
            return []

        found: list[DetectedItem] = []
        for attribute in self._attributes:
            value = element.get(attribute)
            if not isinstance(value, str) or not StringUtils.is_linguistic(value, self._min_length):
                continue
            if self._is_excluded(element, excluded, memo) or self._has_translated_marker(element):
                return []
            if self.ledger.is_translated(element, attribute, value):
                continue
            found.append(
                self._make_item(element, value.strip(), NodeRef.for_attribute(element, attribute, value), attribute)
            )
        return found

    def _make_item(self, element: Tag, text: str, ref: NodeRef, attribute: str | None = None) -> DetectedItem:
        analysis: ContentAnalysis = self.classifier.classify(element, text)
        context: str = f"{analysis.context} ({attribute} attribute)" if attribute else analysis.context
        return DetectedItem(
            text=text,
            node=ref,
            attribute=attribute,
            context=context,
            namespace=namespace_of(element),
            xpath=xpath_of(element),
            analysis=analysis,
        )

    def _excluded_ids(self, root: Tag) -> set[int]:
        excluded: set[int] = set()
        for selector in self._exclude_selectors:
            try:
                excluded.update(id(match) for match in root.select(selector))
            except SelectorSyntaxError as err:
                logger.warning("Ignoring invalid exclusion selector '%s': %s", selector, err)
        return excluded

    def _is_excluded(self, element: Tag, excluded: set[int], memo: dict[int, bool]) -> bool:
        """True if the element or any ancestor is an excluded region."""
        visited: list[int] = []
        result: bool = False
        for node in _lineage(element):
            known: bool | None = memo.get(id(node))
            if known is not None:
                result = known
                break
            visited.append(id(node))
            if id(node) in excluded or node.has_attr("data-no-translate") or node.get("translate") == "no":
                result = True
                break
        for node_id in visited:
            memo[node_id] = result
        return result

    def _has_translated_marker(self, element: Tag) -> bool:
        return any(element.has_attr(marker) for marker in self.TRANSLATED_MARKERS)
