"""Error kinds raised by the pricing engine and order placement."""


class PricingError(Exception):
    """Base class for pricing and placement failures."""
    status_code = 400

    def __init__(self, message=None):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__

    @property
    def kind(self):
        return self.__class__.__name__

    def to_dict(self):
        return {'error': self.kind, 'message': self.message}


class InvalidAttributeSelection(PricingError):
    """Picked attribute is not part of the product's attribute schema."""

    def __init__(self, product_id, key, value=None):
        if value is None:
            message = f'Attribute {key!r} is not available for product {product_id}'
        else:
            message = f'Value {value!r} of attribute {key!r} is not available for product {product_id}'
        super().__init__(message)
        self.product_id = product_id
        self.key = key
        self.value = value


class UnknownCurrency(PricingError):
    """Currency is not configured."""

    def __init__(self, tag):
        super().__init__(f'Currency {tag!r} is not configured')
        self.tag = tag


class CartEmpty(PricingError):
    """Cart is invalid or empty."""


class CouponExhausted(PricingError):
    """Coupon can no longer be applied."""
    status_code = 409

    def __init__(self, codes):
        self.codes = tuple(codes)
        super().__init__(f'Coupon no longer available: {", ".join(self.codes)}')


class ProductUnavailable(PricingError):
    """Product was not found or is not available for sale."""
    status_code = 404

    def __init__(self, product_id, reason='not found'):
        super().__init__(f'Product {product_id} is unavailable: {reason}')
        self.product_id = product_id
        self.reason = reason
