import datetime
import json
import os
import sys
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Mapping

import pytz

from core.classify import list_categories, merge_collections, resolve_category
from core.errors import CatalogError
from core.logger import get_logger
from core.mock_catalog import mock_items
from core.models import CatalogItem, LinkRecord, ProductView
from core.platforms import empty_links
from core.storage import LinkStore, SqliteLinkStore
from fetchers.shopify import ShopifyCatalog
from fetchers.transport import SHOPIFY_STORE

logger = get_logger(__name__)

SHOPIFY_TOKEN = os.getenv("SHOPIFY_TOKEN", "").strip()
# "strict": a failed catalog fetch is reported to the caller.
# "lenient": a failed catalog fetch is answered with the mock catalog.
CATALOG_FAILURE_POLICY = os.getenv("CATALOG_FAILURE_POLICY", "strict").strip().lower()
MODE = os.getenv("MODE", "products").lower()  # products | categories | links | health


class Aggregator:
    """
    Joins the remote catalog, its collections and the link overlay into one
    ProductView per catalog item.
    """

    def __init__(
        self,
        store: LinkStore,
        credential: str | None = None,
        catalog: ShopifyCatalog | None = None,
        failure_policy: str | None = None,
    ):
        self.store = store
        self.credential = SHOPIFY_TOKEN if credential is None else credential
        if catalog is None and self.credential:
            catalog = ShopifyCatalog(self.credential)
        self.catalog = catalog
        self.failure_policy = (failure_policy or CATALOG_FAILURE_POLICY).lower()
        if self.failure_policy not in ("strict", "lenient"):
            raise ValueError(f"Unknown failure policy '{self.failure_policy}'")

    def _zip(
        self,
        items: List[CatalogItem],
        index: Dict[str, List[Dict[str, Any]]],
        links: Mapping[str, LinkRecord],
    ) -> List[ProductView]:
        views: List[ProductView] = []
        for item in items:
            collections = index.get(item.item_id, [])
            record = links.get(item.item_id) or LinkRecord(
                product_id=item.item_id, links=empty_links(self.store.platform_keys)
            )
            views.append(
                ProductView(
                    item=item,
                    category=resolve_category(item, collections),
                    collections=collections,
                    links=record,
                )
            )
        return views

    def _fallback(self, error: CatalogError) -> List[CatalogItem]:
        if self.failure_policy != "lenient":
            raise error
        logger.warning("Catalog fetch failed (%s); serving mock catalog.", error)
        return mock_items()

    def build_catalog_view(self) -> List[ProductView]:
        if self.catalog is None:
            logger.info("No catalog credential configured; serving mock catalog.")
            return self._zip(mock_items(), {}, self.store.get_all())

        logger.info("Fetching all products and collections from %s...", SHOPIFY_STORE)
        # Pages are sequential inside fetch_all_items; the other reads do not
        # depend on it and are merged only once everything has returned.
        with ThreadPoolExecutor(max_workers=4) as pool:
            items_f = pool.submit(self.catalog.fetch_all_items)
            curated_f = pool.submit(self.catalog.fetch_curated_collections)
            rule_f = pool.submit(self.catalog.fetch_rule_collections)
            links_f = pool.submit(self.store.get_all)

            curated = curated_f.result()
            rule_derived = rule_f.result()
            links = links_f.result()
            try:
                items = items_f.result()
            except CatalogError as e:
                return self._zip(self._fallback(e), {}, links)

        index = merge_collections(curated, rule_derived)
        views = self._zip(items, index, links)
        logger.info(
            "Processed %d products with %d collections.",
            len(views),
            len(curated) + len(rule_derived),
        )
        return views

    def list_categories(self) -> List[str]:
        if self.catalog is None:
            items = mock_items()
        else:
            try:
                items = self.catalog.fetch_all_items()
            except CatalogError as e:
                items = self._fallback(e)
        return list_categories(item.product_type for item in items)

    def get_all_links(self) -> Dict[str, Dict[str, str]]:
        logger.info("Fetching all platform links")
        return {pid: record.to_dict() for pid, record in self.store.get_all().items()}

    def get_one_link(self, product_id: Any) -> Dict[str, str]:
        logger.info("Fetching platform links for product: %s", product_id)
        return self.store.get_one(product_id).to_dict()

    def upsert_one_link(self, product_id: Any, fields: Mapping[str, Any]) -> Dict[str, Any]:
        record = self.store.upsert_one(product_id, fields)
        return {
            "success": True,
            "message": "Platform links updated successfully",
            "productId": record.product_id,
            "links": record.to_dict(),
        }

    def upsert_bulk_links(self, entries: Any) -> Dict[str, Any]:
        # Bulk requests arrive as {"links": {product_id: {...}, ...}}
        if isinstance(entries, Mapping) and set(entries) == {"links"} and isinstance(entries["links"], Mapping):
            entries = entries["links"]
        logger.info("Bulk updating platform links")
        updated = self.store.upsert_bulk(entries)
        return {
            "success": True,
            "message": f"Updated {updated} products",
            "updatedCount": updated,
        }

    def health(self) -> Dict[str, Any]:
        return {
            "status": "ok",
            "timestamp": datetime.datetime.now(tz=pytz.UTC).isoformat(),
            "shopifyStore": SHOPIFY_STORE,
            "store": "connected" if self.store.ping() else "unavailable",
        }


def run(mode: str, aggregator: Aggregator) -> Any:
    if mode == "products":
        return [view.to_dict() for view in aggregator.build_catalog_view()]
    if mode == "categories":
        return aggregator.list_categories()
    if mode == "links":
        return aggregator.get_all_links()
    if mode == "health":
        return aggregator.health()
    raise ValueError(f"Unknown MODE '{mode}'")


def main(argv: List[str]) -> int:
    mode = (argv[1] if len(argv) > 1 else MODE).lower()
    try:
        result = run(mode, Aggregator(SqliteLinkStore()))
    except CatalogError as e:
        logger.error("Failed to run '%s': %s", mode, e)
        print(json.dumps(e.to_dict()))
        return 1
    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main(sys.argv))
    except Exception as e:
        logger.exception("Fatal aggregator error: %s", e)
        raise SystemExit(2)
