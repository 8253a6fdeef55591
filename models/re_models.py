"""Regular expressions for content eligibility and classification.

Patterns used by the content scanner to reject non-linguistic text, by the classifier to detect
technical or cultural copy, and by the configuration loader to validate language codes.
"""

from __future__ import annotations

import re
from re import Pattern
from typing import Final

__all__: list[str] = [
    "CONSTANT_PATTERN",
    "CULTURAL_PATTERN",
    "LANGUAGE_CODE_PATTERN",
    "PADDING_PATTERN",
    "SYMBOLS_ONLY_PATTERN",
    "TECHNICAL_PATTERN",
    "URL_PATTERN",
]

# Text made only of digits, whitespace and punctuation
# Example: "12:30", "--", "$ 9.99"
SYMBOLS_ONLY_PATTERN: Final[Pattern[str]] = re.compile(r"""^[\d\s\-.,!@#$%^&*()_+=\[\]{}|;:'"<>?/~`\\]+$""")

# Absolute http(s) URL at the start of the text
URL_PATTERN: Final[Pattern[str]] = re.compile(r"^https?://", re.IGNORECASE)

# ALL_CAPS identifier shaped text
# Example: "MAX_RETRIES", "API_KEY"
CONSTANT_PATTERN: Final[Pattern[str]] = re.compile(r"^[A-Z_][A-Z0-9_]*$")

# Tokens that mark technical copy
TECHNICAL_PATTERN: Final[Pattern[str]] = re.compile(r"\b(?:API|SDK|JSON)\b")

# Tokens that mark culturally loaded copy
CULTURAL_PATTERN: Final[Pattern[str]] = re.compile(r"culture|tradition|community", re.IGNORECASE)

# BCP 47 style language code, e.g. "en", "fr", "pt-BR", "zh-Hant"
LANGUAGE_CODE_PATTERN: Final[Pattern[str]] = re.compile(r"^[a-z]{2,3}(?:-[A-Za-z0-9]{2,8})*$")

# Leading and trailing whitespace around the meaningful part of a text node
PADDING_PATTERN: Final[Pattern[str]] = re.compile(r"^(?P<lead>\s*)(?P<body>.*?)(?P<trail>\s*)$", re.DOTALL)
