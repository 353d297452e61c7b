# fetchers/shopify.py
import os
from typing import Any, List

from core.errors import CatalogError, RemoteAPIError, RemoteFormatError
from core.logger import get_logger
from core.models import CatalogItem, Collection

from . import CONTINUATIONS
from .transport import Transport

logger = get_logger(__name__)

SHOPIFY_API_VERSION = os.getenv("SHOPIFY_API_VERSION", "2023-10").strip()
CATALOG_PAGINATION = os.getenv("CATALOG_PAGINATION", "link").strip().lower()
CATALOG_PAGE_SIZE = int(os.getenv("CATALOG_PAGE_SIZE", "250"))
CATALOG_MAX_PAGES = int(os.getenv("CATALOG_MAX_PAGES", "50"))


class ShopifyCatalog:
    """
    Reads products and collections from a Shopify admin API.

    transport is anything with request(path, method=..., headers=...) returning
    a RawResponse; tests hand in a fake.
    """

    def __init__(
        self,
        credential: str = "",
        transport: Any = None,
        api_version: str | None = None,
        pagination: str | None = None,
        page_size: int | None = None,
        max_pages: int | None = None,
    ):
        self.transport = transport or Transport(credential)
        self.api_version = api_version or SHOPIFY_API_VERSION
        self.page_size = page_size or CATALOG_PAGE_SIZE
        self.max_pages = max_pages or CATALOG_MAX_PAGES

        strategy = (pagination or CATALOG_PAGINATION).lower()
        continuation_cls = CONTINUATIONS.get(strategy)
        if continuation_cls is None:
            raise ValueError(
                f"Unknown pagination strategy '{strategy}'; expected one of {sorted(CONTINUATIONS)}"
            )
        self.continuation = continuation_cls(self._path("products.json"), self.page_size)

    def _path(self, resource: str) -> str:
        return f"/admin/api/{self.api_version}/{resource}"

    def fetch_all_items(self) -> List[CatalogItem]:
        """
        Walk every catalog page in order. Any failed page aborts the whole
        fetch; a partial catalog is never returned.
        """
        logger.info("Fetching all products (%s pagination).", self.continuation.name)

        all_items: List[CatalogItem] = []
        next_path: str | None = self.continuation.first_path()
        page = 0

        while next_path is not None:
            if page >= self.max_pages:
                logger.warning(
                    "Reached page ceiling (%d) with more pages signalled; stopping at %d products.",
                    self.max_pages,
                    len(all_items),
                )
                break

            resp = self.transport.request(next_path, method="GET")
            logger.info("Products page %d response status: %s", page, resp.status_code)

            if not 200 <= resp.status_code < 300:
                raise RemoteAPIError(resp.status_code, resp.body)

            body = resp.body
            if not isinstance(body, dict) or not isinstance(body.get("products"), list):
                raise RemoteFormatError("Invalid response format from catalog API: missing 'products'")

            batch = body["products"]
            if not all(isinstance(p, dict) for p in batch):
                raise RemoteFormatError(f"Invalid response format from catalog API: non-object product on page {page}")
            all_items.extend(CatalogItem.from_api(p) for p in batch)
            logger.debug("Fetched batch of %d products (%d total).", len(batch), len(all_items))

            next_path = self.continuation.next_path(next_path, page, resp.headers, len(batch))
            page += 1

        logger.info("Total products fetched: %d", len(all_items))
        return all_items

    def _fetch_collections(self, resource: str, field: str) -> List[Collection]:
        try:
            resp = self.transport.request(self._path(resource), method="GET")
        except CatalogError as e:
            logger.error("Error fetching %s: %s", field, e)
            return []

        body = resp.body
        if resp.status_code != 200 or not isinstance(body, dict) or not isinstance(body.get(field), list):
            logger.warning("No %s found or error occurred (status %s).", field, resp.status_code)
            return []

        return [Collection.from_api(c) for c in body[field] if isinstance(c, dict)]

    def fetch_curated_collections(self) -> List[Collection]:
        return self._fetch_collections("custom_collections.json", "custom_collections")

    def fetch_rule_collections(self) -> List[Collection]:
        return self._fetch_collections("smart_collections.json", "smart_collections")
