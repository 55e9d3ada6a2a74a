from .common import ProviderAdapter


class AlibabaAdapter(ProviderAdapter):
    key = "alibaba"
    label = "Alibaba"
    website = "https://alibaba.com"
    currency = "USD"
    search_price_band = (2500, 20000)


__all__ = ["AlibabaAdapter"]
