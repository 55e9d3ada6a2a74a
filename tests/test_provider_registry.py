import pytest

from app.services.providers import (
    REGISTRY,
    AlibabaAdapter,
    AliExpressAdapter,
    JumiaAdapter,
    detect_provider_from_url,
    get_adapter_by_key,
    list_providers,
)


@pytest.mark.parametrize(
    ("url", "expected_key"),
    [
        ("https://www.aliexpress.com/item/1005008518647948.html", "aliexpress"),
        ("https://fr.aliexpress.us/item/1005008518647948.html", "aliexpress"),
        ("https://www.alibaba.com/product-detail/Widget_1600.html", "alibaba"),
        ("https://WWW.JUMIA.CI/montre-123.html", "jumia"),
        ("https://www.jumia.com.ng/phone-99.html", "jumia"),
    ],
)
def test_detect_provider_from_url(url: str, expected_key: str) -> None:
    match = detect_provider_from_url(url)
    assert match is not None
    assert match.key == expected_key
    assert match.adapter is REGISTRY[expected_key]


def test_aliexpress_host_is_not_detected_as_alibaba() -> None:
    match = detect_provider_from_url("https://aliexpress.com/item/1.html")
    assert match is not None
    assert match.key == "aliexpress"


@pytest.mark.parametrize(
    "url",
    [
        "https://example.com/product/1",
        "not a url",
        "",
        "https://shop.example.com/alibaba/product",  # fragment in path only
    ],
)
def test_detect_provider_returns_none_for_unknown_hosts(url: str) -> None:
    assert detect_provider_from_url(url) is None


def test_registry_has_three_fixed_providers() -> None:
    assert list_providers() == ["aliexpress", "alibaba", "jumia"]
    assert isinstance(get_adapter_by_key("alibaba"), AlibabaAdapter)
    assert isinstance(get_adapter_by_key("aliexpress"), AliExpressAdapter)
    assert isinstance(get_adapter_by_key("jumia"), JumiaAdapter)


def test_registry_is_read_only() -> None:
    with pytest.raises(TypeError):
        REGISTRY["other"] = get_adapter_by_key("jumia")  # type: ignore[index]


def test_get_adapter_by_key_rejects_unknown_key() -> None:
    with pytest.raises(KeyError):
        get_adapter_by_key("amazon")


def test_adapter_metadata() -> None:
    jumia = get_adapter_by_key("jumia")
    assert jumia.label == "Jumia"
    assert jumia.website == "https://jumia.com"
    assert jumia.currency == "XOF"
    assert jumia.description == "Auto-created supplier for URL imports (Jumia)"
    assert get_adapter_by_key("alibaba").currency == "USD"
