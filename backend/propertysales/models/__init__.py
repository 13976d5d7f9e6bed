from .property_sale import PropertySale

__all__ = [
    "PropertySale",
]
