"""Tests for storefront_assistant/models.py"""

import pytest
from pydantic import ValidationError

from storefront_assistant.models import ChatMessage, ChatRequest, ChatResponse, Product


class TestProduct:
    def test_defaults(self):
        product = Product(id="product_1_abc")
        assert product.title == "Product"
        assert product.availability is True
        assert product.delivery_options == ["courier", "clickAndCollect"]

    def test_immutable(self):
        product = Product(id="product_1_abc")
        with pytest.raises(ValidationError):
            product.title = "Changed"


class TestChatMessage:
    def test_from_reply(self):
        reply = ChatResponse(
            message="Here you go",
            products=[Product(id="product_1_abc", title="Saw")],
            intent="product.search",
            confidence=0.8,
            session_id="s-1",
        )
        message = ChatMessage.from_reply(reply, message_id="2", timestamp=1700000000.0)
        assert message.sender == "bot"
        assert message.text == "Here you go"
        assert message.intent == "product.search"
        assert [product.title for product in message.products] == ["Saw"]

    def test_sender_is_restricted(self):
        with pytest.raises(ValidationError):
            ChatMessage(id="1", text="hi", sender="system", timestamp=0.0)


class TestChatRequest:
    def test_session_id_optional(self):
        assert ChatRequest(message="hi").session_id is None

    def test_uuid_session_id_accepted(self):
        session_id = "0f8fad5b-d9cb-469f-a165-70867728950e"
        assert ChatRequest(session_id=session_id, message="hi").session_id == session_id

    @pytest.mark.parametrize("session_id", ["", "a/b", "x" * 37, "has space"])
    def test_unusable_session_id_rejected(self, session_id):
        with pytest.raises(ValidationError):
            ChatRequest(session_id=session_id, message="hi")
