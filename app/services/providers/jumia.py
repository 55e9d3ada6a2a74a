from .common import ProviderAdapter


class JumiaAdapter(ProviderAdapter):
    key = "jumia"
    label = "Jumia"
    website = "https://jumia.com"
    # Jumia listings are priced in West African CFA francs.
    currency = "XOF"
    search_price_band = (1200, 12000)


__all__ = ["JumiaAdapter"]
