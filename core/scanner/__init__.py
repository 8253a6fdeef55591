"""Detection and classification of translatable document content."""

from core.scanner.classifier import ContentClassifier
from core.scanner.scanner import ContentScanner

__all__: list[str] = ["ContentClassifier", "ContentScanner"]
