import pytest

from aggregator import Aggregator, run
from conftest import products_page, response
from core.classify import INFERRED_CATEGORIES
from core.errors import InvalidPayload, RemoteAPIError
from core.mock_catalog import MOCK_PRODUCTS
from core.platforms import PLATFORM_KEY_SETS
from core.storage import MemoryLinkStore
from fetchers.shopify import ShopifyCatalog

API = "/admin/api/2023-10"
SHORT = PLATFORM_KEY_SETS["short"]


@pytest.fixture
def store():
    return MemoryLinkStore(platform_keys=SHORT)


def _catalog(transport):
    return ShopifyCatalog(transport=transport, pagination="page_size", page_size=2, max_pages=10)


def _shop(transport):
    products = products_page(1, 2)
    products["products"][0].update({"title": "Crystal Chandelier", "body_html": "<p>Hand <b>cut</b></p>"})
    products["products"][1].update({"title": "Mystery Item", "product_type": "Outdoor"})
    transport.add(f"{API}/products.json", response(200, products), response(200, products_page(3, 1)))
    transport.add(
        f"{API}/custom_collections.json",
        response(200, {"custom_collections": [{"id": 11, "title": "Curated", "handle": "curated", "products": [{"id": 3}]}]}),
    )
    transport.add(
        f"{API}/smart_collections.json",
        response(200, {"smart_collections": [{"id": 12, "title": "Smart", "handle": "smart", "products": [{"id": 3}]}]}),
    )
    return transport


def test_no_credential_serves_mock_catalog(store):
    views = Aggregator(store, credential="").build_catalog_view()

    assert [v.item.raw_id for v in views] == [p["id"] for p in MOCK_PRODUCTS]
    assert views[0].category == "Lighting"
    assert views[1].category == "Furniture"
    assert views[2].category == "Pendants"


def test_view_merges_catalog_collections_and_links(store, transport):
    store.upsert_one(1, {"amazon": "https://amazon.example/dp/1"})
    agg = Aggregator(store, credential="token", catalog=_catalog(_shop(transport)))

    views = agg.build_catalog_view()

    assert [v.item.item_id for v in views] == ["1", "2", "3"]
    assert [v.category for v in views] == ["Lighting", "Outdoor", "Curated"]
    assert [c["title"] for c in views[2].collections] == ["Curated", "Smart"]
    assert views[0].links.links["amazon"] == "https://amazon.example/dp/1"
    assert views[1].links.links == {k: "" for k in SHORT}

    out = views[0].to_dict()
    assert out["id"] == 1
    assert out["descriptionText"] == "Hand cut"
    assert out["collections"] == []
    assert set(out["platformLinks"]) == set(SHORT) | {"updatedAt"}


def test_collection_failures_do_not_abort(store, transport):
    transport.add(f"{API}/products.json", response(200, products_page(1, 1)))
    agg = Aggregator(store, credential="token", catalog=_catalog(transport))

    views = agg.build_catalog_view()

    assert len(views) == 1
    assert views[0].collections == []
    assert views[0].category == "Home Decor"


def test_strict_policy_propagates_catalog_failure(store, transport):
    transport.add(f"{API}/products.json", response(503, "unavailable"))
    agg = Aggregator(store, credential="token", catalog=_catalog(transport), failure_policy="strict")

    with pytest.raises(RemoteAPIError):
        agg.build_catalog_view()


def test_lenient_policy_falls_back_to_mock(store, transport):
    transport.add(f"{API}/products.json", response(503, "unavailable"))
    agg = Aggregator(store, credential="token", catalog=_catalog(transport), failure_policy="lenient")

    views = agg.build_catalog_view()

    assert [v.item.raw_id for v in views] == [p["id"] for p in MOCK_PRODUCTS]


def test_unknown_policy_rejected(store):
    with pytest.raises(ValueError):
        Aggregator(store, credential="", failure_policy="sometimes")


def test_list_categories_uses_full_catalog(store, transport):
    agg = Aggregator(store, credential="token", catalog=_catalog(_shop(transport)))

    categories = agg.list_categories()

    assert categories == sorted(set(INFERRED_CATEGORIES) | {"Outdoor"})


def test_link_operations(store):
    agg = Aggregator(store, credential="")

    result = agg.upsert_one_link("9", {"wayfair": "w", "extra": "x"})
    assert result["success"] is True
    assert result["productId"] == "9"
    assert result["links"]["wayfair"] == "w"
    assert "extra" not in result["links"]

    assert agg.get_one_link("9")["wayfair"] == "w"
    assert agg.get_one_link("unknown")["wayfair"] == ""

    bulk = agg.upsert_bulk_links({"1": {"lowes": "l"}, "2": 5})
    assert bulk["updatedCount"] == 1
    assert set(agg.get_all_links()) == {"9", "1"}

    with pytest.raises(InvalidPayload):
        agg.upsert_bulk_links("nope")


def test_health_reports_store_state(store):
    report = Aggregator(store, credential="").health()

    assert report["status"] == "ok"
    assert report["store"] == "connected"


def test_run_modes(store):
    agg = Aggregator(store, credential="")

    assert len(run("products", agg)) == len(MOCK_PRODUCTS)
    assert "Lighting" in run("categories", agg)
    assert run("links", agg) == {}
    with pytest.raises(ValueError):
        run("webhooks", agg)


def test_bulk_links_accepts_links_envelope(store):
    agg = Aggregator(store, credential="")

    result = agg.upsert_bulk_links({"links": {"101": {"amazon": "a"}, "102": {"lowes": "l"}}})

    assert result["updatedCount"] == 2
    assert set(store.get_all()) == {"101", "102"}
    assert store.get_one("101").links["amazon"] == "a"
    assert store.get_one("102").links["lowes"] == "l"


def test_lenient_policy_lists_mock_categories(store, transport):
    transport.add(f"{API}/products.json", response(500, {"errors": "Internal Server Error"}))
    agg = Aggregator(store, credential="token", catalog=_catalog(transport), failure_policy="lenient")

    categories = agg.list_categories()

    mock_types = {p["product_type"] for p in MOCK_PRODUCTS if p["product_type"]}
    assert categories == sorted(set(INFERRED_CATEGORIES) | mock_types)


def test_strict_policy_list_categories_propagates(store, transport):
    transport.add(f"{API}/products.json", response(500, {"errors": "Internal Server Error"}))
    agg = Aggregator(store, credential="token", catalog=_catalog(transport))

    with pytest.raises(RemoteAPIError):
        agg.list_categories()
