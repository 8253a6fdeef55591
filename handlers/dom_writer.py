"""In-place document writes and the record of what has been translated.

Writes only ever change a text node's string or an attribute value of an existing element;
elements themselves are never replaced, so anything the host attached to them survives.
"""

from __future__ import annotations

import weakref
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeAlias

from bs4 import NavigableString
from bs4.element import PreformattedString

from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Iterable, Iterator

    from bs4 import Tag

    from models.content_models import DetectedItem, NodeRef

__all__: list[str] = ["DomWriter", "LedgerRecord", "TranslationLedger"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

SlotKey: TypeAlias = str | int


@dataclass
class LedgerRecord:
    """One applied translation.

    Attributes:
        element (weakref.ReferenceType[Tag]): Weak reference to the written element.
        slot (SlotKey): Attribute name, or the text node position in ``element.contents``.
        original (str): Raw value before the write.
        translated (str): Raw value written.
        language (str): Target language of the write.
    """

    element: weakref.ReferenceType[Tag]
    slot: SlotKey
    original: str
    translated: str
    language: str


class TranslationLedger:
    """Weak record of translated slots, keyed by element identity.

    Entries disappear together with their elements, so the ledger never keeps part of a
    document alive.
    """

    def __init__(self) -> None:
        self._records: dict[int, dict[SlotKey, LedgerRecord]] = {}

    def __len__(self) -> int:
        return sum(len(slots) for slots in self._records.values())

    def record(self, element: Tag, slot: SlotKey, original: str, translated: str, language: str) -> None:
        element_id: int = id(element)
        slots: dict[SlotKey, LedgerRecord] | None = self._records.get(element_id)
        if slots is None:
            slots = {}
            self._records[element_id] = slots

        previous: LedgerRecord | None = slots.get(slot)
        same_element: bool = previous is not None and previous.element() is element
        # overwriting our own earlier write keeps the source text as the restore target
        if previous is not None and same_element and previous.translated == original:
            original = previous.original
        ref: weakref.ReferenceType[Tag] = (
            previous.element  # type: ignore[union-attr]
            if same_element
            else weakref.ref(element, lambda _: self._records.pop(element_id, None))
        )
        slots[slot] = LedgerRecord(ref, slot, original, translated, language)

    def lookup(self, element: Tag, slot: SlotKey) -> LedgerRecord | None:
        record: LedgerRecord | None = self._records.get(id(element), {}).get(slot)
        if record is None or record.element() is not element:
            return None
        return record

    def is_translated(self, element: Tag, slot: SlotKey, current: str) -> bool:
        """True if the slot still shows the value this pipeline wrote into it."""
        record: LedgerRecord | None = self.lookup(element, slot)
        return record is not None and record.translated == current

    def forget(self, record: LedgerRecord) -> None:
        element: Tag | None = record.element()
        if element is None:
            return
        slots: dict[SlotKey, LedgerRecord] | None = self._records.get(id(element))
        if slots is not None and slots.get(record.slot) is record:
            del slots[record.slot]
            if not slots:
                del self._records[id(element)]

    def records(self, language: str | None = None) -> Iterator[LedgerRecord]:
        for slots in list(self._records.values()):
            for record in list(slots.values()):
                if record.element() is None:
                    continue
                if language is None or record.language == language:
                    yield record

    def clear(self) -> None:
        self._records.clear()


class DomWriter:
    """Applies translations to the document and can undo them.

    Args:
        ledger (TranslationLedger | None): Ledger shared with the content scanner.
    """

    def __init__(self, ledger: TranslationLedger | None = None) -> None:
        self.ledger: TranslationLedger = ledger if ledger is not None else TranslationLedger()

    @staticmethod
    def is_attached(element: Tag, root: Tag | None) -> bool:
        """Check that an element has not been decomposed and, if given, still sits under ``root``."""
        if getattr(element, "decomposed", False):
            return False
        if root is None or element is root:
            return True
        return any(parent is root for parent in element.parents)

    @staticmethod
    def find_text(element: Tag, ref: NodeRef) -> tuple[int, NavigableString] | None:
        """Locate the text node a handle points to, provided it still shows the captured text.

        The recorded position is tried first; if the children were reshuffled, the first
        child with the captured text is used instead.
        """
        contents = element.contents
        if ref.index < len(contents):
            child = contents[ref.index]
            if _is_text(child) and str(child) == ref.captured:
                return ref.index, child  # type: ignore[return-value]
        for index, child in enumerate(contents):
            if _is_text(child) and str(child) == ref.captured:
                return index, child  # type: ignore[return-value]
        return None

    def apply(self, item: DetectedItem, translated: str, language: str, *, root: Tag | None = None) -> bool:
        """Write a translation into the slot a detected item came from.

        Nothing is written if the element is gone, detached from ``root`` or the slot no
        longer shows the text captured at scan time. Surrounding whitespace of the captured
        value is preserved.

        Args:
            item (DetectedItem): Item produced by the scanner.
            translated (str): Translated text (without padding).
            language (str): Target language, recorded in the ledger.
            root (Tag | None): Document root the element must still belong to.

        Returns:
            bool: True if the document was changed.
        """
        element: Tag | None = item.node.resolve()
        if element is None or not self.is_attached(element, root):
            logger.debug("Skipping apply, element is gone: %s", item.xpath)
            return False

        lead, _, trail = StringUtils.split_padding(item.node.captured)
        new_value: str = f"{lead}{translated.strip()}{trail}"

        if item.node.attribute is not None:
            if element.get(item.node.attribute) != item.node.captured:
                logger.debug("Skipping apply, attribute changed: %s@%s", item.xpath, item.node.attribute)
                return False
            element[item.node.attribute] = new_value
            self.ledger.record(element, item.node.attribute, item.node.captured, new_value, language)
            return True

        located: tuple[int, NavigableString] | None = self.find_text(element, item.node)
        if located is None:
            logger.debug("Skipping apply, text changed: %s", item.xpath)
            return False
        index, node = located
        node.replace_with(NavigableString(new_value))
        self.ledger.record(element, index, item.node.captured, new_value, language)
        return True

    def restore(self, language: str | None = None) -> list[LedgerRecord]:
        """Revert applied translations whose slot still shows the translated value.

        Args:
            language (str | None): Only revert writes made for this language. None reverts all.

        Returns:
            list[LedgerRecord]: The reverted records, usable with ``reapply``.
        """
        reverted: list[LedgerRecord] = []
        for record in list(self.ledger.records(language)):
            element: Tag | None = record.element()
            if element is not None and self._write(element, record.slot, expected=record.translated, value=record.original):
                reverted.append(record)
            self.ledger.forget(record)
        if reverted:
            logger.debug("Restored %d translated slot(s)", len(reverted))
        return reverted

    def reapply(self, records: Iterable[LedgerRecord]) -> int:
        """Put reverted translations back where the slot still shows the original value.

        Returns:
            int: Number of slots written.
        """
        written: int = 0
        for record in records:
            element: Tag | None = record.element()
            if element is None:
                continue
            if self._write(element, record.slot, expected=record.original, value=record.translated):
                self.ledger.record(element, record.slot, record.original, record.translated, record.language)
                written += 1
        return written

    @staticmethod
    def _write(element: Tag, slot: SlotKey, *, expected: str, value: str) -> bool:
        if isinstance(slot, str):
            if element.get(slot) != expected:
                return False
            element[slot] = value
            return True

        contents = element.contents
        if slot >= len(contents) or not _is_text(contents[slot]) or str(contents[slot]) != expected:
            return False
        contents[slot].replace_with(NavigableString(value))
        return True


def _is_text(node: object) -> bool:
    return isinstance(node, NavigableString) and not isinstance(node, PreformattedString)
