"""Tests for ContentClassifier."""

from __future__ import annotations

import pytest
from bs4 import BeautifulSoup, Tag

from core.scanner.classifier import ContentClassifier


def element(markup: str, selector: str) -> Tag:
    soup = BeautifulSoup(markup, "html.parser")
    found = soup.select_one(selector)
    assert found is not None
    return found


@pytest.fixture
def classifier() -> ContentClassifier:
    return ContentClassifier()


@pytest.mark.parametrize(
    ("markup", "selector", "expected"),
    [
        ("<h1>Welcome</h1>", "h1", ("heading", "high", "marketing")),
        ("<h3>Details</h3>", "h3", ("heading", "medium", "marketing")),
        ("<button>Sign Up</button>", "button", ("button", "high", "marketing")),
        ('<a class="btn primary">Start now</a>', "a", ("button", "high", "marketing")),
        ('<div role="button">Open</div>', "div", ("button", "high", "marketing")),
        ("<nav><a>Pricing plans</a></nav>", "a", ("navigation", "high", "standard")),
        ('<ul class="menu"><li>About us</li></ul>', "ul", ("navigation", "high", "standard")),
        ("<label>Email address</label>", "label", ("form", "medium", "standard")),
        ("<span>Plain words</span>", "span", ("general", "medium", "standard")),
    ],
)
def test_structure_rules(
    classifier: ContentClassifier, markup: str, selector: str, expected: tuple[str, str, str]
) -> None:
    target = element(markup, selector)

    analysis = classifier.classify(target, target.get_text(strip=True))

    assert (analysis.type, analysis.importance, analysis.translation_type) == expected


def test_long_paragraph_is_cultural(classifier: ContentClassifier) -> None:
    text = "Our product helps teams ship faster. " * 4
    target = element(f"<p>{text}</p>", "p")

    analysis = classifier.classify(target, text.strip())

    assert (analysis.type, analysis.importance, analysis.translation_type) == ("paragraph", "medium", "cultural")


def test_hero_section_escalates_to_marketing(classifier: ContentClassifier) -> None:
    target = element('<section class="hero"><span>Fast and simple</span></section>', "span")

    analysis = classifier.classify(target, "Fast and simple")

    assert analysis.importance == "high"
    assert analysis.translation_type == "marketing"
    assert analysis.context.endswith("hero section")


def test_call_to_action_escalates(classifier: ContentClassifier) -> None:
    target = element('<div class="cta-box"><span>Try it free</span></div>', "span")

    analysis = classifier.classify(target, "Try it free")

    assert analysis.importance == "high"
    assert analysis.context.endswith("call-to-action")


def test_footer_lowers_importance(classifier: ContentClassifier) -> None:
    target = element("<footer><h2>Company</h2></footer>", "h2")

    analysis = classifier.classify(target, "Company")

    assert analysis.type == "heading"
    assert analysis.importance == "low"


def test_technical_tokens_override_register(classifier: ContentClassifier) -> None:
    target = element("<h2>Our JSON API</h2>", "h2")

    assert classifier.classify(target, "Our JSON API").translation_type == "technical"


def test_cultural_keywords_override_register(classifier: ContentClassifier) -> None:
    target = element("<button>Join the community</button>", "button")

    assert classifier.classify(target, "Join the community").translation_type == "cultural"


def test_results_are_cached_by_tag_class_and_text(classifier: ContentClassifier) -> None:
    soup = BeautifulSoup("<h1>Welcome</h1><footer><h1>Welcome</h1></footer>", "html.parser")
    first, second = soup.find_all("h1")

    top = classifier.classify(first, "Welcome")
    nested = classifier.classify(second, "Welcome")

    assert nested is top
    assert len(classifier) == 1
    classifier.clear()
    assert len(classifier) == 0
