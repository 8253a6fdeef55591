from __future__ import annotations

import json
import unicodedata
from typing import Any

from models.re_models import CONSTANT_PATTERN, PADDING_PATTERN, SYMBOLS_ONLY_PATTERN, URL_PATTERN

__all__: list[str] = ["StringUtils"]


class StringUtils:
    """Utility class for string manipulation shared by the cache, client and scanner layers.

    Provides static methods for text normalization, request key serialization and
    the shape checks that decide whether a piece of text is worth translating.
    """

    @staticmethod
    def ensure_str(value: str | None) -> str:
        """Ensure that the value is a string, returning an empty string if None.

        Args:
            value (str | None): The value to ensure as a string.

        Returns:
            str: The value as a string, or empty string if None.
        """
        if not isinstance(value, str):
            value = str(value) if value is not None else ""
        return value

    @staticmethod
    def normalize_text(text: str) -> str:
        """Trim text and apply Unicode NFC normalization.

        Visually identical strings composed differently map to the same cache key.

        Args:
            text (str): Text to normalize.

        Returns:
            str: Normalized text.
        """
        return unicodedata.normalize("NFC", StringUtils.ensure_str(text).strip())

    @staticmethod
    def split_padding(text: str) -> tuple[str, str, str]:
        """Split text into leading whitespace, body and trailing whitespace.

        Args:
            text (str): Text to split.

        Returns:
            tuple[str, str, str]: (leading, body, trailing).
        """
        match = PADDING_PATTERN.match(StringUtils.ensure_str(text))
        if match is None:
            return "", text, ""
        return match.group("lead"), match.group("body"), match.group("trail")

    @staticmethod
    def canonical_json(value: Any) -> str:
        """Serialize a value deterministically so that equal payloads produce equal strings.

        Args:
            value (Any): JSON-compatible value.

        Returns:
            str: Compact JSON with sorted keys.
        """
        return json.dumps(value, sort_keys=True, ensure_ascii=False, separators=(",", ":"), default=str)

    @staticmethod
    def is_linguistic(text: str, min_length: int = 3) -> bool:
        """Check whether text looks like natural language worth translating.

        Rejects short strings, strings made only of digits or punctuation, URLs and
        ALL_CAPS identifiers.

        Args:
            text (str): Candidate text (trimmed by the caller or not).
            min_length (int): Minimum trimmed length.

        Returns:
            bool: True if the text is eligible on shape alone.
        """
        trimmed: str = StringUtils.ensure_str(text).strip()
        if len(trimmed) < min_length:
            return False
        if SYMBOLS_ONLY_PATTERN.match(trimmed):
            return False
        if URL_PATTERN.match(trimmed):
            return False
        return not CONSTANT_PATTERN.match(trimmed)
