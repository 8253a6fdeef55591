"""Tests for ContentScanner."""

from __future__ import annotations

import pytest
from bs4 import BeautifulSoup

from core.scanner.scanner import ContentScanner, namespace_of, xpath_of
from handlers.dom_writer import DomWriter, TranslationLedger


def parse(markup: str) -> BeautifulSoup:
    return BeautifulSoup(markup, "html.parser")


@pytest.fixture
def ledger() -> TranslationLedger:
    return TranslationLedger()


@pytest.fixture
def scanner(ledger: TranslationLedger) -> ContentScanner:
    return ContentScanner(ledger=ledger, exclude_selectors=[])


def texts(scanner: ContentScanner, soup: BeautifulSoup) -> list[str]:
    return [item.text for item in scanner.scan(soup)]


def test_scenario_detects_heading_and_button(scanner: ContentScanner) -> None:
    soup = parse("<h1>Welcome</h1><button>Sign Up</button>")

    items = scanner.scan(soup)

    assert [item.text for item in items] == ["Welcome", "Sign Up"]
    heading, button = (item.analysis for item in items)
    assert (heading.type, heading.importance, heading.translation_type) == ("heading", "high", "marketing")
    assert (button.type, button.importance, button.translation_type) == ("button", "high", "marketing")


@pytest.mark.parametrize(
    "text",
    ["Hi", "12:30", "$ 9.99", "https://example.com/page", "MAX_RETRIES", "   "],
)
def test_non_linguistic_text_is_ignored(scanner: ContentScanner, text: str) -> None:
    assert texts(scanner, parse(f"<p>{text}</p>")) == []


def test_skip_tags_are_ignored(scanner: ContentScanner) -> None:
    soup = parse(
        "<head><title>Page title</title><style>body { color: red; }</style></head>"
        "<body><script>var greeting = 'hello there';</script><noscript>Enable scripts</noscript>"
        "<p>Visible text</p></body>"
    )

    assert texts(scanner, soup) == ["Visible text"]


def test_comments_are_ignored(scanner: ContentScanner) -> None:
    assert texts(scanner, parse("<p><!-- internal note -->Shown text</p>")) == ["Shown text"]


def test_configured_selectors_exclude_regions(ledger: TranslationLedger) -> None:
    scanner = ContentScanner(ledger=ledger, exclude_selectors=[".brand", "#legal"])
    soup = parse(
        '<div class="brand"><span>Acme Rockets</span></div>'
        '<div id="legal"><p>All rights reserved</p></div>'
        "<p>Fly higher</p>"
    )

    assert texts(scanner, soup) == ["Fly higher"]


def test_opt_out_markers_exclude_regions(scanner: ContentScanner) -> None:
    soup = parse(
        '<div data-no-translate><p>Keep this</p></div><p translate="no">And this</p><p>Translate this</p>'
    )

    assert texts(scanner, soup) == ["Translate this"]


def test_invalid_selector_is_ignored(ledger: TranslationLedger) -> None:
    scanner = ContentScanner(ledger=ledger, exclude_selectors=["[[broken"])

    assert texts(scanner, parse("<p>Still scanned</p>")) == ["Still scanned"]


def test_marked_elements_are_skipped(scanner: ContentScanner) -> None:
    soup = parse('<p data-translated="fr">Déjà traduit</p><p data-i18n="home.title">Managed</p><p>Fresh text</p>')

    assert texts(scanner, soup) == ["Fresh text"]


def test_allowed_attributes_are_detected(scanner: ContentScanner) -> None:
    soup = parse('<img alt="Company logo" src="logo.png"><input placeholder="Your email" name="email_field">')

    items = scanner.scan(soup)

    assert {(item.attribute, item.text) for item in items} == {("alt", "Company logo"), ("placeholder", "Your email")}
    assert all(item.context.endswith("attribute)") for item in items)


def test_items_are_sorted_by_importance(scanner: ContentScanner) -> None:
    soup = parse("<footer><p>Footer note</p></footer><p>Body copy</p><h1>Main title</h1>")

    assert texts(scanner, soup) == ["Main title", "Body copy", "Footer note"]


def test_translated_nodes_are_not_detected_again(ledger: TranslationLedger, scanner: ContentScanner) -> None:
    soup = parse("<h1>Welcome</h1><button>Sign Up</button>")
    writer = DomWriter(ledger)
    heading, button = scanner.scan(soup)
    writer.apply(heading, "Bienvenue", "fr")

    assert texts(scanner, soup) == ["Sign Up"]

    writer.apply(button, "S'inscrire", "fr")
    assert texts(scanner, soup) == []


def test_externally_changed_node_is_detected_again(ledger: TranslationLedger, scanner: ContentScanner) -> None:
    soup = parse("<h1>Welcome</h1>")
    writer = DomWriter(ledger)
    [heading] = scanner.scan(soup)
    writer.apply(heading, "Bienvenue", "fr")

    h1 = soup.h1
    assert h1 is not None
    h1.string = "Welcome back"

    assert texts(scanner, soup) == ["Welcome back"]


def test_scan_of_subtree_includes_root_attributes(scanner: ContentScanner) -> None:
    soup = parse('<div><button title="Send the form">Send now</button></div>')
    button = soup.button
    assert button is not None

    items = scanner.scan(button)

    assert [item.text for item in items] == ["Send the form", "Send now"]


def test_namespace_detection() -> None:
    soup = parse(
        "<nav><a>Home page</a></nav>"
        '<header><h1>Big title</h1></header><div class="features"><p>Feature one</p></div>'
        '<div class="pricing"><p>Per month</p></div><footer><p>Contact us</p></footer><p>Other text</p>'
    )

    regions = [namespace_of(node.parent) for node in soup.find_all(string=True)]

    assert regions == ["nav", "hero", "features", "pricing", "footer", "common"]


def test_xpath_prefers_id_then_position() -> None:
    soup = parse('<div><p>First</p><p>Second</p></div><section id="intro"><p>Third</p></section>')
    paragraphs = soup.find_all("p")

    assert xpath_of(paragraphs[1]) == "/div/p[2]"
    section = soup.find("section")
    assert section is not None
    assert xpath_of(section) == '//*[@id="intro"]'
