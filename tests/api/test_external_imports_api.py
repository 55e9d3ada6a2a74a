from fastapi.testclient import TestClient
import pytest

from app.errors import FetchError
from app.helpers.dependencies import get_catalog, get_storage
from app.main import app
from app.services.providers import get_adapter_by_key
from tests.helpers._fakes import InMemoryCatalog, external_product

ADMIN_HEADERS = {"Authorization": "Bearer admin-token"}
BASE = "/api/admin/external-imports"

client = TestClient(app)


@pytest.fixture
def catalog():
    catalog = InMemoryCatalog(
        tokens={"admin-token": "admin-1", "staff-token": "staff-1", "root-token": "root-1"},
        roles={"admin-1": "admin", "staff-1": "customer", "root-1": "super_admin"},
    )
    app.dependency_overrides[get_catalog] = lambda: catalog
    app.dependency_overrides[get_storage] = lambda: None
    yield catalog
    app.dependency_overrides.clear()


def test_health() -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


@pytest.mark.parametrize(
    "headers",
    [
        {},
        {"Authorization": "Bearer unknown-token"},
        {"Authorization": "Bearer staff-token"},
        {"Authorization": "Basic admin-token"},
    ],
)
def test_admin_routes_reject_non_admins(catalog, headers) -> None:
    response = client.post(f"{BASE}/import-by-url", json={"url": "https://www.jumia.ci/x.html"}, headers=headers)

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}
    assert catalog.products == []


def test_super_admin_is_allowed(catalog) -> None:
    response = client.get(f"{BASE}/providers", headers={"Authorization": "Bearer root-token"})

    assert response.status_code == 200
    assert [p["key"] for p in response.json()["providers"]] == ["aliexpress", "alibaba", "jumia"]


def test_import_by_url_requires_url(catalog) -> None:
    response = client.post(f"{BASE}/import-by-url", json={}, headers=ADMIN_HEADERS)

    assert response.status_code == 400
    assert response.json() == {"error": "Missing url"}


def test_import_by_url_rejects_unsupported_provider(catalog) -> None:
    response = client.post(f"{BASE}/import-by-url", json={"url": "https://example.com/p/1"}, headers=ADMIN_HEADERS)

    assert response.status_code == 400
    assert response.json() == {"error": "Unsupported provider for URL: https://example.com/p/1"}
    assert catalog.products == []


def test_import_by_url_maps_fetch_failure_to_500(catalog, monkeypatch) -> None:
    def fake_fetch(url: str):
        raise FetchError("Failed to fetch product page (503)", url=url, upstream_status=503)

    monkeypatch.setattr(get_adapter_by_key("jumia"), "fetch_by_url", fake_fetch)

    response = client.post(f"{BASE}/import-by-url", json={"url": "https://www.jumia.ci/x.html"}, headers=ADMIN_HEADERS)

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to fetch product page (503)"}


def test_import_by_url_success(catalog, monkeypatch) -> None:
    url = "https://www.jumia.ci/montre-123.html"
    monkeypatch.setattr(
        get_adapter_by_key("jumia"),
        "fetch_by_url",
        lambda _url: external_product(external_id="jumia_mo-123", name="Montre", price=10000, url=url),
    )

    response = client.post(
        f"{BASE}/import-by-url",
        json={"url": url, "pricingRules": {"strategy": "percent", "percent": 10, "roundTo": 500}},
        headers=ADMIN_HEADERS,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["product"]["external_id"] == "jumia_mo-123"
    assert body["product"]["price"] == 11000
    assert body["product"]["provider"] == "jumia"
    assert body["product"]["product_id"] == catalog.products[0]["id"]
    assert catalog.products[0]["price"] == 11000


def test_import_batch_missing_payload(catalog) -> None:
    response = client.post(f"{BASE}/import-batch", json={"supplierLabel": "Alibaba"}, headers=ADMIN_HEADERS)

    assert response.status_code == 400
    assert response.json() == {"error": "Missing payload"}
    assert catalog.jobs == {}


def test_import_batch_invalid_candidate_fails_only_its_item(catalog) -> None:
    payload = {
        "supplierLabel": "Alibaba",
        "products": [
            {"external_id": "alibaba_ok", "name": "Lamp", "price": 1000},
            {"external_id": "alibaba_bad", "name": "Broken", "price": -1},
        ],
    }

    response = client.post(f"{BASE}/import-batch", json=payload, headers=ADMIN_HEADERS)

    assert response.status_code == 200
    body = response.json()
    assert (body["success"], body["failed"]) == (1, 1)
    assert catalog.jobs[body["job_id"]].status == "partial"
    ok_item, bad_item = catalog.items_for(body["job_id"])
    assert ok_item["status"] == "success"
    assert bad_item["status"] == "failed"
    assert bad_item["external_id"] == "alibaba_bad"
    assert bad_item["error"].startswith("Invalid candidate: price:")
    assert [row["external_id"] for row in catalog.products] == ["alibaba_ok"]


def test_import_batch_success(catalog) -> None:
    catalog.products.append({"id": "prod-old", "external_id": "alibaba_dup", "slug": "old"})
    payload = {
        "supplierLabel": "Alibaba",
        "pricingRules": {"strategy": "fixed", "fixed": 250},
        "products": [
            {"external_id": "alibaba_new", "name": "Lamp", "price": 1000, "image_url": None, "category": "Lighting"},
            {"external_id": "alibaba_dup", "name": "Dup", "price": 500},
        ],
    }

    response = client.post(f"{BASE}/import-batch", json=payload, headers=ADMIN_HEADERS)

    assert response.status_code == 200
    body = response.json()
    assert body == {"ok": True, "job_id": body["job_id"], "success": 1, "failed": 1}
    job = catalog.jobs[body["job_id"]]
    assert job.user_id == "admin-1"
    assert job.status == "partial"
    assert job.pricing_rules["fixed"] == 250
    assert catalog.products[-1]["price"] == 1250


def test_jobs_listing_clamps_page_size(catalog) -> None:
    for _ in range(7):
        catalog.create_job(supplier="Alibaba", user_id="admin-1", pricing_rules=None)

    response = client.get(f"{BASE}/jobs", params={"page": 1, "pageSize": 1}, headers=ADMIN_HEADERS)

    assert response.status_code == 200
    body = response.json()
    assert body["pageSize"] == 5
    assert body["total"] == 7
    assert len(body["data"]) == 5
    assert body["data"][0]["supplier"] == "Alibaba"

    second = client.get(f"{BASE}/jobs", params={"page": 2, "pageSize": 500}, headers=ADMIN_HEADERS).json()
    assert second["pageSize"] == 50
    assert second["data"] == []


def test_search_unknown_supplier(catalog) -> None:
    response = client.get(f"{BASE}/search", params={"supplier": "amazon", "q": "lamp"}, headers=ADMIN_HEADERS)

    assert response.status_code == 400
    assert response.json()["error"].startswith("Unknown supplier")


def test_search_returns_candidates(catalog) -> None:
    response = client.get(
        f"{BASE}/search",
        params={"supplier": "Jumia", "q": "lamp", "limit": 3},
        headers=ADMIN_HEADERS,
    )

    assert response.status_code == 200
    products = response.json()["products"]
    assert len(products) == 3
    assert all(p["supplier_name"] == "Jumia" for p in products)
