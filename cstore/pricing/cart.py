"""
Cart Total Engine.

Holds one pricing pass: normalizes the submitted cart, loads products
through the injected lookups, resolves variants, stacks coupons, adds
shipping and converts every emitted figure to the active currency.
The engine keeps no state between calls and performs no writes.
"""

import json
from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable

from cstore.errors import ProductUnavailable
from cstore.utils.logger import get_logger

from .attributes import resolve_line
from .coupons import apply_coupons, normalize_codes
from .types import CartLine, CartTotal, PricedLine

logger = get_logger(__name__)

MAX_ATTRIBUTE_KEYS = 1000
MAX_ATTRIBUTE_VALUES = 1000


# ═══════════════════════════════════════════════════════════════════════════════
# Input normalization
# ═══════════════════════════════════════════════════════════════════════════════


def _as_identifier(value):
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (str, int)):
        value = str(value).strip()
        return value or None
    return None


def _as_quantity(value):
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def sanitize_picked_attributes(picked):
    """
    Apply the payload caps to a picked-attributes mapping.

    More than MAX_ATTRIBUTE_KEYS keys drops the whole mapping; a key with no
    values or more than MAX_ATTRIBUTE_VALUES values is dropped. A bare
    string value counts as a one-element list.
    """
    if not isinstance(picked, Mapping):
        return {}
    if len(picked) > MAX_ATTRIBUTE_KEYS:
        logger.warning('Dropping picked attributes: %d keys exceeds %d', len(picked), MAX_ATTRIBUTE_KEYS)
        return {}

    sanitized = {}
    for key, values in picked.items():
        if not isinstance(key, str) or not key:
            continue
        if isinstance(values, (str, int, float)) and not isinstance(values, bool):
            values = [values]
        if not isinstance(values, (list, tuple)):
            continue
        if len(values) > MAX_ATTRIBUTE_VALUES:
            logger.warning('Dropping attribute %r: %d values exceeds %d', key, len(values), MAX_ATTRIBUTE_VALUES)
            continue

        kept = []
        for value in values:
            if isinstance(value, bool) or not isinstance(value, (str, int, float)):
                continue
            value = str(value)
            if value not in kept:
                kept.append(value)
        if kept:
            sanitized[key] = tuple(kept)
    return sanitized


def normalize_line(raw):
    """Map one raw cart entry to a CartLine, or None when it cannot be priced."""
    if isinstance(raw, CartLine):
        if raw.quantity < 1:
            return None
        return replace(raw, picked_attributes=sanitize_picked_attributes(raw.picked_attributes))
    if not isinstance(raw, Mapping):
        return None

    product_id = raw.get('productId', raw.get('product_id'))
    if product_id is None and isinstance(raw.get('product'), Mapping):
        product_id = raw['product'].get('id')
    product_id = _as_identifier(product_id)
    if product_id is None:
        return None

    quantity = _as_quantity(raw.get('amount', raw.get('quantity', 1)))
    if quantity is None or quantity < 1:
        return None

    return CartLine(
        product_id=product_id,
        quantity=quantity,
        picked_attributes=sanitize_picked_attributes(raw.get('pickedAttributes', raw.get('picked_attributes'))),
    )


def parse_cart(payload):
    """Parse a cart submitted as a JSON string or a list into CartLines."""
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except ValueError:
            logger.warning('Failed to parse cart payload')
            return []
    if not isinstance(payload, (list, tuple)):
        return []

    lines = []
    for raw in payload:
        line = normalize_line(raw)
        if line is not None:
            lines.append(line)
    return lines


# ═══════════════════════════════════════════════════════════════════════════════
# Shipping
# ═══════════════════════════════════════════════════════════════════════════════


def flat_shipping(price):
    """Shipping policy charging one flat price (minor units) per non-empty cart."""
    def policy(lines, subtotal):
        return price if lines else 0
    return policy


# ═══════════════════════════════════════════════════════════════════════════════
# Engine
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Catalog:
    """Lookup functions the engine reads products, attributes and coupons through."""
    get_product_by_id: Callable
    get_attributes: Callable
    get_coupons_by_codes: Callable


class CartEngine:
    """Prices carts against a catalog and a currency table."""

    def __init__(self, catalog, currencies, shipping_policy=None, strict_attributes=True):
        self.catalog = catalog
        self.currencies = currencies
        self.shipping_policy = shipping_policy or flat_shipping(0)
        self.strict_attributes = strict_attributes

    def load_product(self, product_id):
        product = self.catalog.get_product_by_id(product_id)
        if product is None:
            raise ProductUnavailable(product_id)
        if not product.is_enabled:
            raise ProductUnavailable(product_id, 'disabled')
        if not product.is_in_stock():
            raise ProductUnavailable(product_id, 'out of stock')
        return product

    def price_line(self, line, attributes):
        """Price one cart line in the computation currency."""
        product = self.load_product(line.product_id)
        resolved = resolve_line(product, line.picked_attributes, attributes, self.strict_attributes)
        return PricedLine(
            product_id=product.id,
            product_name=resolved.name,
            sku=product.sku,
            quantity=line.quantity,
            unit_price=resolved.unit_price,
            unit_old_price=resolved.unit_old_price,
            subtotal=resolved.unit_price * line.quantity,
            subtotal_old=resolved.unit_old_price * line.quantity,
            picked_attributes=resolved.picked_attributes,
            main_image=resolved.main_image,
            images=resolved.images,
            description=resolved.description,
            categories=product.categories,
        )

    def compute_total(self, lines, currency=None, coupon_codes=(), shipping_policy=None, now=None):
        """
        Compute the cart total.

        Args:
            lines: CartLines or raw cart entries; invalid entries are dropped.
            currency: Active currency tag, None for the computation currency.
            coupon_codes: Codes in client order.
            shipping_policy: Overrides the engine's policy for this call.
            now: Point in time for coupon validity; defaults to utcnow.

        Returns:
            CartTotal in the active currency.
        """
        target = self.currencies.get(currency)
        now = now or datetime.utcnow()
        shipping_policy = shipping_policy or self.shipping_policy

        source_lines = []
        for raw in lines or ():
            line = normalize_line(raw)
            if line is not None:
                source_lines.append(line)

        attributes = {attribute.key: attribute for attribute in (self.catalog.get_attributes() or ())}

        priced = []
        for line in source_lines:
            try:
                priced.append(self.price_line(line, attributes))
            except ProductUnavailable as exc:
                logger.debug('Excluding cart line: %s', exc.message)

        subtotal = sum(line.subtotal for line in priced)
        subtotal_old = sum(line.subtotal_old for line in priced)
        coupons = apply_coupons(subtotal, coupon_codes, self.catalog.get_coupons_by_codes, now)
        shipping_price = shipping_policy(priced, subtotal)

        def convert(minor):
            return self.currencies.convert_minor(minor, target.tag)

        subtotal = convert(subtotal)
        discount = convert(coupons.discount)
        shipping_price = convert(shipping_price)

        return CartTotal(
            currency=target.tag,
            lines=tuple(self._convert_line(line, convert) for line in priced),
            subtotal_old=convert(subtotal_old),
            subtotal=subtotal,
            discount=discount,
            shipping_price=shipping_price,
            grand_total=max(0, subtotal - discount) + shipping_price,
            quantity_total=sum(line.quantity for line in priced),
            applied_coupons=coupons.applied_codes,
            source_lines=tuple(source_lines),
            requested_coupons=tuple(normalize_codes(coupon_codes)),
            rejected_coupons=coupons.rejected,
        )

    @staticmethod
    def _convert_line(line, convert):
        return replace(
            line,
            unit_price=convert(line.unit_price),
            unit_old_price=convert(line.unit_old_price),
            subtotal=convert(line.subtotal),
            subtotal_old=convert(line.subtotal_old),
        )
