"""Normalization of Dialogflow CX response messages into chat text and products.

Role:
    Turns the ``responseMessages`` list of a ``detectIntent`` reply into the
    ``{message, products}`` pair the chat widget renders. Everything here is pure
    and synchronous: no network, no shared state.

Input contract (one response message, camelCase JSON):
    - responseType: only ``HANDLER_PROMPT`` messages are considered.
    - text.text: list of lines; the first line of the first such message is the reply.
    - payload.richContent: list of groups, each a list of rich content items.
      ``payload`` may be the plain struct or the ``{"fields": {...}}`` wrapper.

Rich content item contract:
    - type == "info" marks a product card; chips, images and buttons are skipped.
    - metadata: struct with title/description/url/image_url/availability/
      unit_of_measure/keywords/categories; title, subtitle and actionLink on the
      item itself act as fallbacks.

Failure policy:
    Nothing in this module raises to its caller. Malformed input degrades to
    fewer products or the fallback text; skipped items are logged at debug level.
"""

from __future__ import annotations

import logging
import random
import string
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, List, Optional

from .models import DEFAULT_DELIVERY_OPTIONS, Category, Product
from .typed_value import (
    TypedValue,
    extract_bool,
    extract_list,
    extract_string,
    extract_struct,
)

logger = logging.getLogger("storefront.parser")

HANDLER_PROMPT = "HANDLER_PROMPT"
PRODUCT_ITEM_TYPE = "info"
FALLBACK_TEXT = "I apologize, but I couldn't process your request right now."

_ID_ALPHABET = string.digits + string.ascii_lowercase


@dataclass
class ParsedReply:
    """Normalized reply handed to the HTTP layer."""
    message: str = FALLBACK_TEXT
    products: List[Product] = field(default_factory=list)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _generate_product_id() -> str:
    # Render key only; not checked for collisions.
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"product_{int(time.time() * 1000)}_{suffix}"


def parse_categories(categories_field: Any) -> List[List[Category]]:
    """Purpose: Parse the two-level category structure of a product.
    Inputs/Outputs: Input is a list-of-lists typed value; output is a list of category paths.
    Side Effects / State: None; pure function.
    Dependencies: Uses extract_list/extract_struct/extract_string.
    Failure Modes: Missing input yields []; missing name/id default to "Unknown"/"unknown".
    If Removed: Product cards lose their breadcrumb.
    Testing Notes: Verify nesting is preserved and duplicates are kept.
    """
    # Walk groups, then entries; never flatten or dedupe.
    paths: List[List[Category]] = []
    for group in extract_list(categories_field):
        path: List[Category] = []
        for entry in extract_list(group):
            fields = extract_struct(entry) or {}
            path.append(
                Category(
                    name=extract_string(fields.get("name")) or "Unknown",
                    id=extract_string(fields.get("id")) or "unknown",
                )
            )
        paths.append(path)
    return paths


def parse_keywords(keywords_field: Any) -> List[str]:
    """Return the string entries of a keyword list in source order; other entries are dropped."""
    keywords: List[str] = []
    for entry in extract_list(keywords_field):
        keyword = extract_string(entry)
        if keyword:
            keywords.append(keyword)
    return keywords


def extract_product(item: Any) -> Optional[Product]:
    """Purpose: Build one Product from a rich content item.
    Inputs/Outputs: Input is a typed value for one item; output is a Product or None.
    Side Effects / State: Emits debug logs for skipped items.
    Dependencies: Uses typed value accessors, parse_keywords and parse_categories.
    Failure Modes: Non-struct items, non-"info" types and missing metadata return None;
        unexpected exceptions are logged and return None.
    If Removed: Product cards are never shown in the chat.
    Testing Notes: Check each gate returns None and that metadata wins over item fields.
    """
    # Apply the validation gates, then fill fields with their fallbacks.
    try:
        item_fields = extract_struct(item)
        if item_fields is None:
            logger.debug("skip item reason=not_struct")
            return None

        item_type = extract_string(item_fields.get("type"))
        if item_type != PRODUCT_ITEM_TYPE:
            logger.debug("skip item reason=type type=%s", item_type)
            return None

        metadata = extract_struct(item_fields.get("metadata"))
        if metadata is None:
            logger.debug("skip item reason=no_metadata")
            return None

        availability = extract_bool(metadata.get("availability"))
        return Product(
            id=_generate_product_id(),
            title=extract_string(metadata.get("title"))
            or extract_string(item_fields.get("title"))
            or "Product",
            description=extract_string(metadata.get("description"))
            or extract_string(item_fields.get("subtitle"))
            or "No description available",
            product_url=extract_string(metadata.get("url"))
            or extract_string(item_fields.get("actionLink"))
            or "#",
            image_url=extract_string(metadata.get("image_url")) or "",
            availability=True if availability is None else availability,
            unit_of_measure=extract_string(metadata.get("unit_of_measure")) or "each",
            keywords=parse_keywords(metadata.get("keywords")),
            delivery_options=list(DEFAULT_DELIVERY_OPTIONS),
            categories=parse_categories(metadata.get("categories")),
        )
    except Exception:
        logger.warning("skip item reason=error", exc_info=True)
        return None


def _payload_rich_content(message: Mapping) -> Optional[TypedValue]:
    fields = extract_struct(message.get("payload"))
    if not fields:
        return None
    rich_content = fields.get("richContent")
    if rich_content is None or rich_content.is_absent:
        return None
    return rich_content


def extract_products(response_messages: Any) -> List[Product]:
    """Purpose: Collect every product card from a list of response messages.
    Inputs/Outputs: Input is the raw responseMessages list; output is a list of Products
        in (message, group, item) order.
    Side Effects / State: Emits debug/info logs with counts.
    Dependencies: Uses _payload_rich_content and extract_product.
    Failure Modes: Non-sequence input yields []; a bad item or unreadable message is
        skipped and the rest are still collected.
    If Removed: /api/chat answers with text only.
    Testing Notes: Mix text, chip and info items across messages and assert order.
    """
    # Filter to handler prompts carrying rich content, then flatten groups and items.
    products: List[Product] = []
    if not _is_sequence(response_messages):
        logger.debug("response messages are not a list type=%s", type(response_messages).__name__)
        return products
    for message_index, message in enumerate(response_messages):
        if not isinstance(message, Mapping) or message.get("responseType") != HANDLER_PROMPT:
            continue
        try:
            rich_content = _payload_rich_content(message)
            if rich_content is None:
                continue
            groups = extract_list(rich_content)
        except Exception:
            logger.warning("skipping unreadable message=%d", message_index, exc_info=True)
            continue
        for group_index, group in enumerate(groups):
            items = extract_list(group)
            logger.debug(
                "message=%d group=%d items=%d", message_index, group_index, len(items)
            )
            for item in items:
                product = extract_product(item)
                if product is not None:
                    products.append(product)
    logger.info("products extracted count=%d", len(products))
    return products


def extract_text(response_messages: Any) -> str:
    """Return the first line of the first handler prompt text message, or FALLBACK_TEXT."""
    if not _is_sequence(response_messages):
        return FALLBACK_TEXT
    for message in response_messages:
        if not isinstance(message, Mapping) or message.get("responseType") != HANDLER_PROMPT:
            continue
        text = message.get("text")
        lines = text.get("text") if isinstance(text, Mapping) else None
        if _is_sequence(lines) and lines:
            first = lines[0]
            return first if isinstance(first, str) and first else FALLBACK_TEXT
    return FALLBACK_TEXT


def parse_response(response_messages: Any) -> ParsedReply:
    """Run both extractors over one reply."""
    return ParsedReply(
        message=extract_text(response_messages),
        products=extract_products(response_messages),
    )
