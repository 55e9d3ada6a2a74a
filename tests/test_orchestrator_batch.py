from datetime import datetime, timezone

import pytest

from app.errors import ValidationError
from app.models import PricingRules
from app.services.orchestrator import ImportOrchestrator, batch_status
from tests.helpers._fakes import FakeStorage, InMemoryCatalog, external_product

FINISHED_AT = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _orchestrator(catalog: InMemoryCatalog, storage: FakeStorage | None = None) -> ImportOrchestrator:
    return ImportOrchestrator(catalog, storage, clock=lambda: FINISHED_AT)


def test_batch_all_success() -> None:
    catalog = InMemoryCatalog()
    rules = PricingRules(strategy="fixed", fixed=500, min_margin=100)
    products = [
        external_product(external_id="alibaba_a", name="Lamp A", price=1000),
        external_product(external_id="alibaba_b", name="Lamp B", price=2000),
    ]

    result = _orchestrator(catalog).import_batch("Alibaba", products, rules, user_id="user-1")

    assert (result.success, result.failed, result.status) == (2, 0, "success")
    job = catalog.jobs[result.job_id]
    assert job.status == "success"
    assert (job.success_count, job.failed_count) == (2, 0)
    assert job.finished_at == FINISHED_AT
    assert job.user_id == "user-1"
    assert job.supplier == "Alibaba"
    assert job.pricing_rules == {
        "strategy": "fixed",
        "percent": None,
        "fixed": 500,
        "minMargin": 100,
        "roundTo": None,
        "psychological": False,
    }
    assert [row["price"] for row in catalog.products] == [1500, 2500]

    items = catalog.items_for(result.job_id)
    assert [item["status"] for item in items] == ["success", "success"]
    assert [item["product_id"] for item in items] == [row["id"] for row in catalog.products]
    assert items[0]["raw"]["external_id"] == "alibaba_a"


def test_batch_with_duplicate_is_partial() -> None:
    catalog = InMemoryCatalog(products=[{"id": "prod-old", "external_id": "alibaba_dup", "slug": "old"}])
    products = [
        external_product(external_id="alibaba_new", name="New"),
        external_product(external_id="alibaba_dup", name="Dup"),
    ]

    result = _orchestrator(catalog).import_batch("Alibaba", products)

    assert (result.success, result.failed, result.status) == (1, 1, "partial")
    items = catalog.items_for(result.job_id)
    assert items[1]["status"] == "failed"
    assert items[1]["error"] == "Already exists"
    assert len(catalog.products) == 2
    assert result.outcomes[1].error_kind == "DuplicateItemError"


def test_batch_all_failed() -> None:
    catalog = InMemoryCatalog(fail_inserts_for={"alibaba_a", "alibaba_b"})
    products = [external_product(external_id="alibaba_a"), external_product(external_id="alibaba_b")]

    result = _orchestrator(catalog).import_batch("Alibaba", products)

    assert (result.success, result.failed, result.status) == (0, 2, "failed")
    assert catalog.jobs[result.job_id].status == "failed"
    assert all(item["error"] == "products insert failed: boom" for item in catalog.items_for(result.job_id))


def test_failing_item_does_not_stop_the_rest() -> None:
    catalog = InMemoryCatalog(fail_inserts_for={"alibaba_b"})
    products = [
        external_product(external_id="alibaba_a", name="A"),
        external_product(external_id="alibaba_b", name="B"),
        external_product(external_id="alibaba_c", name="C"),
    ]

    result = _orchestrator(catalog).import_batch("Alibaba", products)

    assert [outcome.ok for outcome in result.outcomes] == [True, False, True]
    assert [row["external_id"] for row in catalog.products] == ["alibaba_a", "alibaba_c"]


def test_invalid_mapping_candidate_becomes_failed_item() -> None:
    catalog = InMemoryCatalog()
    candidates = [
        {"external_id": "alibaba_a", "name": "Lamp A", "price": 1000, "stock_quantity": 3},
        {"external_id": "alibaba_b", "name": "Lamp B", "price": 1000, "stock_quantity": 3.5},
        "not a product",
    ]

    result = _orchestrator(catalog).import_batch("Alibaba", candidates)

    assert (result.success, result.failed, result.status) == (1, 2, "partial")
    good, fractional, garbage = catalog.items_for(result.job_id)
    assert good["status"] == "success"
    assert fractional["external_id"] == "alibaba_b"
    assert fractional["raw"]["stock_quantity"] == 3.5
    assert fractional["error"].startswith("Invalid candidate: stock_quantity:")
    assert garbage["external_id"] is None
    assert garbage["raw"] == {"candidate": "not a product"}
    assert garbage["status"] == "failed"
    assert result.outcomes[1].error_kind == "ValidationError"
    assert [row["external_id"] for row in catalog.products] == ["alibaba_a"]


def test_unexpected_error_is_recorded_as_failure(monkeypatch) -> None:
    catalog = InMemoryCatalog()

    def broken_slug_lookup(slug: str) -> bool:
        raise RuntimeError("connection reset")

    monkeypatch.setattr(catalog, "product_slug_exists", broken_slug_lookup)

    result = _orchestrator(catalog).import_batch("Alibaba", [external_product()])

    assert result.status == "failed"
    (item,) = catalog.items_for(result.job_id)
    assert item["error"] == "connection reset"


def test_empty_batch_finishes_as_success() -> None:
    catalog = InMemoryCatalog()

    result = _orchestrator(catalog).import_batch("Jumia", [])

    assert (result.success, result.failed, result.status) == (0, 0, "success")
    assert catalog.jobs[result.job_id].finished_at == FINISHED_AT


@pytest.mark.parametrize(("label", "products"), [("", [external_product()]), ("Alibaba", None)])
def test_missing_payload_creates_no_job(label, products) -> None:
    catalog = InMemoryCatalog()

    with pytest.raises(ValidationError) as exc_info:
        _orchestrator(catalog).import_batch(label, products)

    assert str(exc_info.value) == "Missing payload"
    assert catalog.jobs == {}


def test_categories_and_supplier_are_created_once() -> None:
    catalog = InMemoryCatalog()
    products = [
        external_product(external_id="jumia_1", category="Home Decor"),
        external_product(external_id="jumia_2", category="Home Decor"),
        external_product(external_id="jumia_3", category=""),
    ]

    _orchestrator(catalog).import_batch("jumia", products)

    assert [(c["name"], c["slug"]) for c in catalog.categories] == [("Home Decor", "home-decor"), ("Auto", "auto")]
    (supplier,) = catalog.suppliers
    assert supplier["name"] == "jumia"
    assert supplier["website"] == "https://jumia.com"


def test_unknown_supplier_label_still_imports() -> None:
    catalog = InMemoryCatalog()

    result = _orchestrator(catalog).import_batch("Local Wholesaler", [external_product()])

    assert result.status == "success"
    assert catalog.suppliers[0]["name"] == "Local Wholesaler"
    assert catalog.suppliers[0]["website"] is None


def test_batch_keeps_candidate_image_urls() -> None:
    catalog = InMemoryCatalog()
    storage = FakeStorage()

    _orchestrator(catalog, storage).import_batch("Alibaba", [external_product()])

    assert catalog.products[0]["image_url"] == "https://img.example.com/widget.jpg"
    assert storage.objects == {}


@pytest.mark.parametrize(
    ("success", "failed", "expected"),
    [(3, 0, "success"), (0, 0, "success"), (0, 2, "failed"), (1, 1, "partial")],
)
def test_batch_status(success: int, failed: int, expected: str) -> None:
    assert batch_status(success, failed) == expected
