"""SQLAlchemy-backed collaborators for the pricing engine."""

from contextlib import contextmanager
from flask import current_app
from cstore.extensions import db
from cstore.models import Attribute, Coupon, Order, Product
from cstore.pricing import (CartEngine, Catalog, CurrencyTable, OrderMaterializer,
                            flat_shipping, to_minor)

PAYMENT_PROVIDERS_KEY = 'cstore.payment_providers'


def get_product_by_id(product_id):
    """Get a product snapshot, or None when it does not exist."""
    product = db.session.get(Product, str(product_id))
    if product is None:
        return None
    return product.to_record()


def get_attributes():
    """Get all enabled global attributes."""
    return [attribute.to_record() for attribute in Attribute.query.filter_by(is_enabled=True).all()]


def get_coupons_by_codes(codes):
    """Get coupon snapshots for codes, matched case-insensitively."""
    return [coupon.to_record() for coupon in Coupon.get_by_codes(codes)]


catalog = Catalog(
    get_product_by_id=get_product_by_id,
    get_attributes=get_attributes,
    get_coupons_by_codes=get_coupons_by_codes,
)


class OrderRepository:
    """Order persistence on the Flask-SQLAlchemy session."""

    @contextmanager
    def transaction(self):
        """Commit on success, roll back and re-raise on any error."""
        try:
            yield db.session
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

    def claim_coupon(self, code):
        return Coupon.claim(code)

    def find_by_checkout_token(self, token):
        return Order.query.filter_by(checkout_token=token).first()

    def create_order(self, total, customer, checkout_token=None):
        order = Order.from_total(total, customer, checkout_token)
        db.session.add(order)
        db.session.flush()
        return order


def make_engine(config=None):
    """Build a CartEngine from application config."""
    config = config or current_app.config
    return CartEngine(
        catalog,
        CurrencyTable(config['CURRENCIES']),
        shipping_policy=flat_shipping(to_minor(config['DEFAULT_SHIPPING_PRICE']) or 0),
        strict_attributes=config['STRICT_ATTRIBUTES'],
    )


def make_materializer(config=None):
    """Build an OrderMaterializer from application config."""
    config = config or current_app.config
    return OrderMaterializer(make_engine(config), OrderRepository(), config['COUPON_EXHAUSTED_POLICY'])


def register_payment_provider(app, name, provider):
    """Register a callable(cart_total) -> payment option dict for payment sessions."""
    app.extensions.setdefault(PAYMENT_PROVIDERS_KEY, {})[name] = provider


def get_payment_providers():
    return current_app.extensions.get(PAYMENT_PROVIDERS_KEY, {})
