# core/classify.py
from typing import Any, Callable, Dict, Iterable, List, Sequence, Tuple

from .models import CatalogItem, Collection

DEFAULT_CATEGORY = "Home Decor"

# Ordered (keywords, label) rules; the first entry with any keyword in the
# lower-cased title wins. "Floor Lamp" is therefore Lighting, not Floor Lamps.
TITLE_KEYWORD_RULES: List[Tuple[Tuple[str, ...], str]] = [
    (("lamp", "light", "chandelier", "sconce"), "Lighting"),
    (("table", "desk"), "Furniture"),
    (("outdoor", "wall"), "Outdoor"),
    (("floor",), "Floor Lamps"),
    (("pendant",), "Pendants"),
    (("ceiling",), "Ceiling Lights"),
    (("bedroom", "nightstand"), "Bedroom"),
    (("bathroom",), "Bathroom"),
    (("kitchen",), "Kitchen"),
]

# Offered by the category listing even when no product carries them.
INFERRED_CATEGORIES = [
    "Lighting",
    "Furniture",
    "Outdoor",
    "Floor Lamps",
    "Pendants",
    "Home Decor",
]

CollectionIndex = Dict[str, List[Dict[str, Any]]]


def merge_collections(
    curated: Sequence[Collection], rule_derived: Sequence[Collection]
) -> CollectionIndex:
    """
    Build item_id -> [collection summary, ...].
    Curated collections come before rule-derived ones; duplicate membership in
    the source data is kept as-is.
    """
    index: CollectionIndex = {}
    for collection in list(curated) + list(rule_derived):
        summary = collection.summary()
        for member_id in collection.member_ids:
            index.setdefault(member_id, []).append(summary)
    return index


def infer_category_from_title(title: str | None) -> str:
    lower = (title or "").lower()
    for keywords, label in TITLE_KEYWORD_RULES:
        if any(k in lower for k in keywords):
            return label
    return DEFAULT_CATEGORY


def _from_type(item: CatalogItem, collections: List[Dict[str, Any]]) -> str:
    return item.product_type if item.product_type.strip() else ""


def _from_collections(item: CatalogItem, collections: List[Dict[str, Any]]) -> str:
    if not collections:
        return ""
    return collections[0].get("title") or ""


def _from_title(item: CatalogItem, collections: List[Dict[str, Any]]) -> str:
    return infer_category_from_title(item.title)


CATEGORY_RESOLVERS: List[Callable[[CatalogItem, List[Dict[str, Any]]], str]] = [
    _from_type,
    _from_collections,
    _from_title,
]


def resolve_category(item: CatalogItem, collections: List[Dict[str, Any]]) -> str:
    for resolver in CATEGORY_RESOLVERS:
        category = resolver(item, collections)
        if category:
            return category
    return DEFAULT_CATEGORY


def list_categories(product_types: Iterable[str | None]) -> List[str]:
    """
    Distinct non-blank product types unioned with INFERRED_CATEGORIES, sorted.
    """
    found = {t for t in product_types if t and t.strip()}
    return sorted(found | set(INFERRED_CATEGORIES))
