"""
Attribute Resolver.

Turns a product plus the customer's picked attribute values into the
effective variant: price, old price, images, description and name, each
overridden field-by-field by the variants of the picked values.
"""

from cstore.errors import InvalidAttributeSelection
from cstore.utils.logger import get_logger

from .types import ResolvedLine

logger = get_logger(__name__)

OVERRIDE_FIELDS = ('name', 'price', 'old_price', 'main_image', 'images', 'description')


def validate_picks(product, picked_attributes, attributes=None, strict=True):
    """
    Check picked attributes against the product's schema.

    Returns a new mapping ordered by the product's declared schema, with
    values in declared order. In strict mode the first invalid pick raises
    InvalidAttributeSelection; otherwise invalid keys and values are dropped.
    """
    attributes = attributes or {}
    accepted = {}

    for key, values in picked_attributes.items():
        schema = product.get_attribute(key)
        if schema is None:
            if strict:
                raise InvalidAttributeSelection(product.id, key)
            logger.debug('Dropping unknown attribute %r for product %s', key, product.id)
            continue

        kept = set()
        for value in values:
            if schema.find(value) is None:
                if strict:
                    raise InvalidAttributeSelection(product.id, key, value)
                logger.debug('Dropping value %r of attribute %r for product %s', value, key, product.id)
                continue
            kept.add(value)
        if kept:
            accepted[key] = kept

    ordered = {}
    for schema in product.attributes:
        if schema.key not in accepted:
            continue
        values = tuple(option.value for option in schema.values if option.value in accepted[schema.key])

        definition = attributes.get(schema.key)
        if definition is not None and definition.is_single_choice and len(values) > 1:
            if strict:
                raise InvalidAttributeSelection(product.id, schema.key, values[1])
            values = values[:1]
        ordered[schema.key] = values

    return ordered


def resolve_line(product, picked_attributes, attributes=None, strict=True):
    """
    Resolve the effective variant of a product for the picked attributes.

    Variants are applied in the product's schema order (keys, then values),
    so when several picked values override the same field the last one wins.
    Fields are overridden independently of each other.
    """
    picks = validate_picks(product, picked_attributes, attributes, strict)

    effective = {name: getattr(product, name) for name in OVERRIDE_FIELDS}
    for schema in product.attributes:
        selected = picks.get(schema.key)
        if not selected:
            continue
        for option in schema.values:
            if option.value not in selected or option.variant is None:
                continue
            for name in OVERRIDE_FIELDS:
                override = getattr(option.variant, name)
                if override is not None:
                    effective[name] = override

    # The charged price is always `price` when present; `old_price` is the "was" price.
    unit_price = effective['price']
    if unit_price is None:
        unit_price = effective['old_price'] or 0
    unit_old_price = effective['old_price']
    if unit_old_price is None:
        unit_old_price = unit_price

    return ResolvedLine(
        product=product,
        name=effective['name'],
        unit_price=unit_price,
        unit_old_price=unit_old_price,
        main_image=effective['main_image'],
        images=tuple(effective['images'] or ()),
        description=effective['description'],
        picked_attributes=picks,
    )
