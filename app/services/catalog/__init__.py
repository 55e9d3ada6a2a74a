from .gateway import CatalogGateway, MediaStorage

__all__ = ["CatalogGateway", "MediaStorage"]
