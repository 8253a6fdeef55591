from __future__ import annotations

from models.translation_models import ProviderReply, QueueState, TranslationRequest, TranslationResult


def make_request(text: str, target: str = "fr", context: str | None = None) -> TranslationRequest:
    return TranslationRequest(text=text, source_lang="en", target_lang=target, context=context)


def test_request_serializes_to_provider_body() -> None:
    request = TranslationRequest(
        text="Welcome", source_lang="en", target_lang="fr", context="h1 heading element", translation_type="marketing"
    )

    assert request.to_dict() == {
        "text": "Welcome",
        "sourceLang": "en",
        "targetLang": "fr",
        "context": "h1 heading element",
        "translationType": "marketing",
    }
    assert request.identity_key == "Welcome|en|fr|h1 heading element"


def test_identity_key_without_context() -> None:
    assert make_request("Welcome").identity_key == "Welcome|en|fr|"


def test_provider_reply_reads_camel_case() -> None:
    reply = ProviderReply.from_dict({"translatedText": "Bienvenue", "confidence": 0.9})

    assert reply.translated_text == "Bienvenue"
    assert reply.confidence == 0.9


def test_queue_rejects_duplicates() -> None:
    queue = QueueState()

    assert queue.enqueue(make_request("Welcome")) is True
    assert queue.enqueue(make_request("Welcome")) is False
    assert queue.enqueue(make_request("Welcome", context="footer")) is True
    assert queue.enqueue(make_request("Welcome", target="de")) is True
    assert len(queue) == 3


def test_queue_takes_batches_in_order() -> None:
    queue = QueueState()
    for i in range(7):
        queue.enqueue(make_request(f"Item {i}"))

    first = queue.take(5)
    second = queue.take(5)

    assert [request.text for request in first] == [f"Item {i}" for i in range(5)]
    assert [request.text for request in second] == ["Item 5", "Item 6"]
    assert len(queue) == 0
    assert queue.take(5) == []


def test_completed_requests_are_not_queued_again() -> None:
    queue = QueueState()
    request = make_request("Welcome")
    queue.enqueue(request)
    queue.take(1)
    queue.complete(request, TranslationResult(translated_text="Bienvenue"))

    assert queue.enqueue(make_request("Welcome")) is False
    assert queue.completed[request.identity_key].translated_text == "Bienvenue"
