from .product_payloads import external_product_to_loggable

__all__ = ["external_product_to_loggable"]
