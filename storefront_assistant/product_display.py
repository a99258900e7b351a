from __future__ import annotations

from typing import Dict, Iterable, List, Sequence

from .models import Category, Product, ProductCard

DELIVERY_LABELS: Dict[str, str] = {
    "courier": "Courier Delivery",
    "clickAndCollect": "Click & Collect",
}
DEFAULT_CATEGORY_PATH = "General"
CARD_KEYWORD_LIMIT = 3


def delivery_labels(options: Iterable[str]) -> str:
    """Map delivery option codes to shopper-facing labels, comma separated."""
    return ", ".join(DELIVERY_LABELS.get(option, option) for option in options or [])


def category_path(categories: Sequence[Sequence[Category]]) -> str:
    """Purpose: Pick the breadcrumb shown on a product card.
    Inputs/Outputs: Input is the product's category paths; output is "A > B" or "General".
    Side Effects / State: None; pure function.
    Dependencies: Uses Category from models.
    Failure Modes: No usable path returns DEFAULT_CATEGORY_PATH.
    If Removed: Cards show no category line.
    Testing Notes: Paths starting at "root" are skipped; empty paths are skipped.
    """
    # First non-empty path that does not start at the catalog root.
    for path in categories or []:
        if path and path[0].name != "root":
            return " > ".join(category.name for category in path)
    return DEFAULT_CATEGORY_PATH


def availability_label(available: bool) -> str:
    return "In Stock" if available else "Out of Stock"


def card_keywords(keywords: Sequence[str], limit: int = CARD_KEYWORD_LIMIT) -> List[str]:
    return list(keywords[:limit])


def product_card(product: Product) -> ProductCard:
    """Build the display strings for one product card."""
    return ProductCard(
        product_id=product.id,
        category_path=category_path(product.categories),
        availability_label=availability_label(product.availability),
        delivery_label=delivery_labels(product.delivery_options),
        keywords=card_keywords(product.keywords),
    )
