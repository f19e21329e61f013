"""Tests for the tagged message payloads."""
import pytest
from pydantic import TypeAdapter, ValidationError

from aquahub.schemas.chat import (
    ImagePayload,
    MessagePayload,
    ProductCardPayload,
    ServiceRequestPayload,
    TextPayload,
)

adapter = TypeAdapter(MessagePayload)


@pytest.mark.parametrize(
    "payload, preview",
    [
        (TextPayload(text="  Hola  "), "Hola"),
        (ImagePayload(image_url="https://img/pond.jpg"), "📷 Image"),
        (ProductCardPayload(title="Bomba sumergible", price="Q1200.00"), "Inquiry: Bomba sumergible"),
        (ServiceRequestPayload(request_type="quote", title="Estanque 20x10", description="..."), "Quote request: Estanque 20x10"),
    ],
)
def test_preview(payload, preview):
    assert payload.preview() == preview


def test_discriminated_by_kind():
    payload = adapter.validate_python({"kind": "product_card", "title": "Alimento", "price": "Q50", "message": "¿Disponible?"})

    assert isinstance(payload, ProductCardPayload)
    assert payload.body() == "¿Disponible?"


def test_card_text_is_not_sniffed():
    # a text message that looks like a card stays text
    payload = adapter.validate_python({"kind": "text", "text": "::product-card::\ntitle=x"})
    assert isinstance(payload, TextPayload)


def test_blank_text_rejected():
    with pytest.raises(ValidationError):
        adapter.validate_python({"kind": "text", "text": "   "})


def test_unknown_kind_rejected():
    with pytest.raises(ValidationError):
        adapter.validate_python({"kind": "sticker"})


def test_preview_truncated():
    assert len(TextPayload(text="x" * 500).preview()) == 200
