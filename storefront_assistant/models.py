from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_DELIVERY_OPTIONS = ("courier", "clickAndCollect")

# Dialogflow CX session ids: at most 36 characters, and they end up in a resource path.
SESSION_ID_PATTERN = r"^[A-Za-z0-9_-]{1,36}$"


class ChatRequest(BaseModel):
    """Request payload for chat API."""
    session_id: Optional[str] = Field(default=None, pattern=SESSION_ID_PATTERN)
    message: Optional[str] = Field(default=None)


class Category(BaseModel):
    """One step of a product category path."""
    model_config = ConfigDict(frozen=True)

    name: str = "Unknown"
    id: str = "unknown"


class Product(BaseModel):
    """Normalized product card extracted from a rich content item."""
    model_config = ConfigDict(frozen=True)

    id: str
    title: str = "Product"
    description: str = "No description available"
    product_url: str = "#"
    image_url: str = ""
    availability: bool = True
    unit_of_measure: str = "each"
    keywords: List[str] = Field(default_factory=list)
    delivery_options: List[str] = Field(default_factory=lambda: list(DEFAULT_DELIVERY_OPTIONS))
    categories: List[List[Category]] = Field(default_factory=list)


class ProductCard(BaseModel):
    """Display-ready strings for one product card."""
    product_id: str
    category_path: str
    availability_label: str
    delivery_label: str
    keywords: List[str]


class TextBlock(BaseModel):
    """Formatted chunk of bot reply text for the chat bubble."""
    kind: Literal["paragraph", "heading", "list"]
    text: str = ""
    items: List[str] = Field(default_factory=list)


class ChatMessage(BaseModel):
    """Chat transcript entry as kept by the browser widget (never stored server-side)."""
    id: str
    text: str
    sender: Literal["user", "bot"]
    timestamp: float
    intent: Optional[str] = None
    confidence: Optional[float] = None
    products: Optional[List[Product]] = None

    @classmethod
    def from_reply(cls, reply: "ChatResponse", message_id: str, timestamp: float) -> "ChatMessage":
        """Build the bot bubble the widget appends after a successful /api/chat call."""
        return cls(
            id=message_id,
            text=reply.message,
            sender="bot",
            timestamp=timestamp,
            intent=reply.intent,
            confidence=reply.confidence,
            products=list(reply.products),
        )


class ChatResponse(BaseModel):
    """Response payload returned by the chat API."""
    message: str
    products: List[Product]
    cards: List[ProductCard] = Field(default_factory=list)
    blocks: List[TextBlock] = Field(default_factory=list)
    intent: Optional[str] = None
    confidence: Optional[float] = None
    parameters: Optional[Dict[str, Any]] = None
    session_id: str
    actual_response: Optional[List[Dict[str, Any]]] = None
    reply: Optional[ChatMessage] = None


class ErrorResponse(BaseModel):
    """Error body returned for rejected or failed chat requests."""
    error: str
    details: Optional[str] = None
