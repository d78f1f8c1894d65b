"""
Cart pricing and coupon resolution.

    from cstore.pricing import CartEngine, Catalog, CurrencyTable

    engine = CartEngine(catalog, CurrencyTable(currencies), flat_shipping(1000))
    total = engine.compute_total(parse_cart(payload), 'EUR', ['SAVE10'])
"""

from .attributes import resolve_line, validate_picks
from .cart import CartEngine, Catalog, flat_shipping, normalize_line, parse_cart, sanitize_picked_attributes
from .coupons import apply_coupons, normalize_codes
from .currency import Currency, CurrencyTable, convert, format_minor, from_minor, to_minor
from .orders import OrderMaterializer, create_payment_session
from .types import (
    AttributeRecord,
    AttributeValue,
    CartLine,
    CartTotal,
    CategoryRecord,
    CouponRecord,
    CouponResult,
    CustomerFields,
    PaymentContext,
    PricedLine,
    ProductAttribute,
    ProductRecord,
    ResolvedLine,
    VariantOverride,
)

__all__ = (
    "resolve_line",
    "validate_picks",
    "CartEngine",
    "Catalog",
    "flat_shipping",
    "normalize_line",
    "parse_cart",
    "sanitize_picked_attributes",
    "apply_coupons",
    "normalize_codes",
    "Currency",
    "CurrencyTable",
    "convert",
    "format_minor",
    "from_minor",
    "to_minor",
    "OrderMaterializer",
    "create_payment_session",
    "AttributeRecord",
    "AttributeValue",
    "CartLine",
    "CartTotal",
    "CategoryRecord",
    "CouponRecord",
    "CouponResult",
    "CustomerFields",
    "PaymentContext",
    "PricedLine",
    "ProductAttribute",
    "ProductRecord",
    "ResolvedLine",
    "VariantOverride",
)
