"""Immutable records the pricing engine works on.

Catalog records are snapshots handed in by the lookup functions; the engine
never writes them back. All money is in minor units (cents) of the
computation currency unless a field says otherwise.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from .currency import format_minor, round_half_up


RADIO = 'radio'
CHECKBOX = 'checkbox'

IN_STOCK = 'in_stock'
OUT_OF_STOCK = 'out_of_stock'

PERCENTAGE = 'percentage'
FIXED = 'fixed'

USAGE_LIMIT_REACHED = 'Coupon usage limit reached'


# ═══════════════════════════════════════════════════════════════════════════════
# Catalog
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class VariantOverride:
    """Replacement values declared by one attribute value. None = not overridden."""
    name: Optional[str] = None
    price: Optional[int] = None
    old_price: Optional[int] = None
    main_image: Optional[str] = None
    images: Optional[tuple[str, ...]] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class AttributeValue:
    value: str
    variant: Optional[VariantOverride] = None


@dataclass(frozen=True)
class ProductAttribute:
    """One attribute key as declared on a product, values in declared order."""
    key: str
    values: tuple[AttributeValue, ...] = ()

    def find(self, value):
        for option in self.values:
            if option.value == value:
                return option
        return None


@dataclass(frozen=True)
class AttributeRecord:
    """Global attribute definition."""
    key: str
    type: str = CHECKBOX
    values: tuple[str, ...] = ()

    @property
    def is_single_choice(self):
        return self.type == RADIO


@dataclass(frozen=True)
class CategoryRecord:
    id: str
    name: str


@dataclass(frozen=True)
class ProductRecord:
    id: str
    name: str
    price: Optional[int] = None
    old_price: Optional[int] = None
    sku: Optional[str] = None
    main_image: Optional[str] = None
    images: tuple[str, ...] = ()
    description: Optional[str] = None
    attributes: tuple[ProductAttribute, ...] = ()
    categories: tuple[CategoryRecord, ...] = ()
    stock_amount: Optional[int] = None
    stock_status: str = IN_STOCK
    is_enabled: bool = True

    def is_in_stock(self):
        """Check if product is in stock. A null stock amount is not tracked."""
        if self.stock_status == OUT_OF_STOCK:
            return False
        return self.stock_amount is None or self.stock_amount > 0

    def get_attribute(self, key):
        for attribute in self.attributes:
            if attribute.key == key:
                return attribute
        return None


@dataclass(frozen=True)
class CouponRecord:
    code: str
    discount_type: str
    discount_value: int  # minor units for fixed, percent (0-100) for percentage
    min_order_amount: int = 0
    max_discount: Optional[int] = None
    usage_limit: Optional[int] = None
    used_times: int = 0
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    is_active: bool = True

    def is_valid(self, order_amount, now):
        """Check if coupon is valid for a pre-discount order amount."""
        if not self.is_active:
            return False, 'Coupon is not active'

        if self.valid_from and now < self.valid_from:
            return False, 'Coupon is not yet valid'
        if self.valid_until and now > self.valid_until:
            return False, 'Coupon has expired'

        if self.usage_limit is not None and self.used_times >= self.usage_limit:
            return False, USAGE_LIMIT_REACHED

        if order_amount < self.min_order_amount:
            return False, f'Minimum order amount is {format_minor(self.min_order_amount)}'

        return True, 'Coupon is valid'

    def calculate_discount(self, order_amount):
        """Calculate the discount against an amount, never more than the amount."""
        if self.discount_type == PERCENTAGE:
            discount = round_half_up(Decimal(order_amount) * Decimal(str(self.discount_value)) / 100)
            if self.max_discount is not None:
                discount = min(discount, self.max_discount)
        else:  # fixed
            discount = self.discount_value
        return max(0, min(discount, order_amount))


# ═══════════════════════════════════════════════════════════════════════════════
# Cart
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class CartLine:
    """A validated cart line. picked_attributes keeps the client's key order."""
    product_id: str
    quantity: int
    picked_attributes: dict = field(default_factory=dict)


@dataclass(frozen=True)
class ResolvedLine:
    """A product with its variant overrides applied."""
    product: ProductRecord
    name: str
    unit_price: int
    unit_old_price: int
    main_image: Optional[str]
    images: tuple[str, ...]
    description: Optional[str]
    picked_attributes: dict


@dataclass(frozen=True)
class PricedLine:
    """A cart line priced in the emitted currency."""
    product_id: str
    product_name: str
    sku: Optional[str]
    quantity: int
    unit_price: int
    unit_old_price: int
    subtotal: int
    subtotal_old: int
    picked_attributes: dict
    main_image: Optional[str]
    images: tuple[str, ...]
    description: Optional[str]
    categories: tuple[CategoryRecord, ...]

    def to_dict(self):
        return {
            'productId': self.product_id,
            'name': self.product_name,
            'sku': self.sku,
            'amount': self.quantity,
            'price': format_minor(self.unit_price),
            'oldPrice': format_minor(self.unit_old_price),
            'subtotal': format_minor(self.subtotal),
            'subtotalOld': format_minor(self.subtotal_old),
            'pickedAttributes': {key: list(values) for key, values in self.picked_attributes.items()},
            'mainImage': self.main_image,
            'images': list(self.images),
            'description': self.description,
            'categories': [{'id': c.id, 'name': c.name} for c in self.categories],
        }


@dataclass(frozen=True)
class CouponResult:
    discount: int
    applied_codes: tuple[str, ...]
    rejected: dict = field(default_factory=dict)


@dataclass(frozen=True)
class CartTotal:
    """Result of one pricing pass. Money is in minor units of `currency`."""
    currency: str
    lines: tuple[PricedLine, ...]
    subtotal_old: int
    subtotal: int
    discount: int
    shipping_price: int
    grand_total: int
    quantity_total: int
    applied_coupons: tuple[str, ...]
    source_lines: tuple[CartLine, ...] = ()
    requested_coupons: tuple[str, ...] = ()
    rejected_coupons: dict = field(default_factory=dict)

    @property
    def is_empty(self):
        return not self.lines

    @property
    def exhausted_coupons(self):
        """Requested codes dropped because their usage limit was reached."""
        return tuple(code for code, reason in self.rejected_coupons.items() if reason == USAGE_LIMIT_REACHED)

    def to_dict(self):
        return {
            'currency': self.currency,
            'cart': [line.to_dict() for line in self.lines],
            'subtotalOld': format_minor(self.subtotal_old),
            'subtotal': format_minor(self.subtotal),
            'discount': format_minor(self.discount),
            'shippingPrice': format_minor(self.shipping_price),
            'grandTotal': format_minor(self.grand_total),
            'quantityTotal': self.quantity_total,
            'appliedCoupons': list(self.applied_coupons),
        }


@dataclass(frozen=True)
class CustomerFields:
    user_id: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    customer_address: Optional[str] = None
    customer_comment: Optional[str] = None
    shipping_method: Optional[str] = None
    payment_method: Optional[str] = None
    from_url: Optional[str] = None

    @classmethod
    def from_payload(cls, data):
        """Pick customer fields from a camelCase request body."""
        return cls(
            user_id=_text(data.get('userId')),
            customer_name=_text(data.get('customerName')),
            customer_phone=_text(data.get('customerPhone')),
            customer_email=_text(data.get('customerEmail')),
            customer_address=_text(data.get('customerAddress')),
            customer_comment=_text(data.get('customerComment')),
            shipping_method=_text(data.get('shippingMethod')),
            payment_method=_text(data.get('paymentMethod')),
            from_url=_text(data.get('fromUrl')),
        )


@dataclass(frozen=True)
class PaymentContext:
    """Redirect targets a payment provider builds its links from."""
    success_url: Optional[str] = None
    cancel_url: Optional[str] = None
    from_url: Optional[str] = None

    @classmethod
    def from_payload(cls, data):
        return cls(
            success_url=_text(data.get('successUrl')),
            cancel_url=_text(data.get('cancelUrl')),
            from_url=_text(data.get('fromUrl')),
        )


def _text(value):
    """Request strings only; numbers are kept as text, anything else is dropped."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return value
    return None
