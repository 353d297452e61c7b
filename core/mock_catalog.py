# core/mock_catalog.py
from typing import Any, Dict, List

from .models import CatalogItem

# Served when no credential is configured, or when a lenient deployment cannot
# reach the catalog. Must stay deterministic.
MOCK_PRODUCTS: List[Dict[str, Any]] = [
    {
        "id": 1001,
        "title": "Crystal Chandelier",
        "body_html": "<p>Eight-arm crystal chandelier with a polished chrome frame.</p>",
        "product_type": "",
        "images": [{"src": "https://via.placeholder.com/600x600?text=Chandelier"}],
        "variants": [{"title": "Chrome", "price": "899.00", "sku": "MOCK-CH-001"}],
    },
    {
        "id": 1002,
        "title": "Walnut Writing Desk",
        "body_html": "<p>Solid walnut desk with two drawers.</p>",
        "product_type": "",
        "images": [{"src": "https://via.placeholder.com/600x600?text=Desk"}],
        "variants": [{"title": "Default Title", "price": "649.00", "sku": "MOCK-DK-002"}],
    },
    {
        "id": 1003,
        "title": "Brass Pendant",
        "body_html": "<p>Brushed brass pendant for kitchen islands.</p>",
        "product_type": "Pendants",
        "images": [{"src": "https://via.placeholder.com/600x600?text=Pendant"}],
        "variants": [
            {"title": "Small", "price": "189.00", "sku": "MOCK-PD-003-S"},
            {"title": "Large", "price": "249.00", "sku": "MOCK-PD-003-L"},
        ],
    },
    {
        "id": 1004,
        "title": "Garden Lantern",
        "body_html": "",
        "product_type": "Outdoor",
        "images": [],
        "variants": [{"title": "Black", "price": "129.00", "sku": "MOCK-OD-004"}],
    },
]


def mock_items() -> List[CatalogItem]:
    return [CatalogItem.from_api(p) for p in MOCK_PRODUCTS]
