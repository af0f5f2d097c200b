from .adapter import VariantOptions, normalize_variant_options
from .service import CatalogService

__all__ = ["CatalogService", "VariantOptions", "normalize_variant_options"]
