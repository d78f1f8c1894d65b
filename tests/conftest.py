"""Pytest configuration for cstore tests."""

from datetime import datetime

import pytest

from cstore import create_app
from cstore.extensions import db as _db
from cstore.pricing import (AttributeRecord, AttributeValue, CartEngine, Catalog, CouponRecord,
                            CategoryRecord, CurrencyTable, ProductAttribute, ProductRecord,
                            VariantOverride, flat_shipping)

NOW = datetime(2026, 1, 1, 12, 0, 0)

CURRENCIES = [
    {'tag': 'USD', 'title': 'US Dollar', 'symbol': '$', 'ratio': 1},
    {'tag': 'EUR', 'title': 'Euro', 'symbol': '€', 'ratio': 0.8},
]


# ---------------------------------------------------------------------------
# In-memory catalog for engine tests, no database involved.
# ---------------------------------------------------------------------------

class InMemoryCatalog:
    """Dict-backed stand-in for the catalog store."""

    def __init__(self, products=(), attributes=(), coupons=()):
        self.products = {product.id: product for product in products}
        self.attributes = list(attributes)
        self.coupons = {coupon.code.upper(): coupon for coupon in coupons}
        self.coupon_lookups = []

    def add_product(self, product):
        self.products[product.id] = product

    def add_coupon(self, coupon):
        self.coupons[coupon.code.upper()] = coupon

    def get_product_by_id(self, product_id):
        return self.products.get(product_id)

    def get_attributes(self):
        return list(self.attributes)

    def get_coupons_by_codes(self, codes):
        self.coupon_lookups.append(list(codes))
        return [self.coupons[code.upper()] for code in codes if code.upper() in self.coupons]

    def as_catalog(self):
        return Catalog(
            get_product_by_id=self.get_product_by_id,
            get_attributes=self.get_attributes,
            get_coupons_by_codes=self.get_coupons_by_codes,
        )


@pytest.fixture
def tshirt():
    """Product priced 100.00 (was 150.00) with three attribute keys."""
    return ProductRecord(
        id='tshirt',
        name='Classic T-Shirt',
        price=10000,
        old_price=15000,
        sku='TSH-001',
        main_image='/tshirt.jpg',
        images=('/tshirt.jpg',),
        description='Plain cotton tee',
        attributes=(
            ProductAttribute('Color', (
                AttributeValue('Black'),
                AttributeValue('Red', VariantOverride(price=11000)),
            )),
            ProductAttribute('Size', (
                AttributeValue('S'),
                AttributeValue('XL', VariantOverride(price=12000, old_price=17000)),
            )),
            ProductAttribute('Print', (
                AttributeValue('Logo', VariantOverride(main_image='/logo.jpg', images=('/logo.jpg', '/logo-back.jpg'))),
                AttributeValue('Stripe', VariantOverride(description='Striped tee', name='Striped T-Shirt')),
            )),
        ),
        categories=(CategoryRecord('1', 'Apparel'),),
    )


@pytest.fixture
def attributes():
    return [
        AttributeRecord('Color', 'radio', ('Black', 'Red')),
        AttributeRecord('Size', 'radio', ('S', 'XL')),
        AttributeRecord('Print', 'checkbox', ('Logo', 'Stripe')),
    ]


@pytest.fixture
def coupons():
    return [
        CouponRecord(code='SAVE10', discount_type='percentage', discount_value=10),
        CouponRecord(code='FLAT5', discount_type='fixed', discount_value=500),
        CouponRecord(code='EXPIRED', discount_type='fixed', discount_value=500,
                     valid_until=datetime(2025, 1, 1)),
        CouponRecord(code='USEDUP', discount_type='fixed', discount_value=500,
                     usage_limit=1, used_times=1),
        CouponRecord(code='MIN500', discount_type='fixed', discount_value=1000,
                     min_order_amount=50000),
        CouponRecord(code='HUGE', discount_type='fixed', discount_value=1000000),
    ]


@pytest.fixture
def memory_catalog(tshirt, attributes, coupons):
    return InMemoryCatalog(products=[tshirt], attributes=attributes, coupons=coupons)


@pytest.fixture
def currencies():
    return CurrencyTable(CURRENCIES)


@pytest.fixture
def engine(memory_catalog, currencies):
    """Engine with a flat 10.00 shipping charge and strict attribute checks."""
    return CartEngine(memory_catalog.as_catalog(), currencies, flat_shipping(1000), strict_attributes=True)


@pytest.fixture
def lenient_engine(memory_catalog, currencies):
    return CartEngine(memory_catalog.as_catalog(), currencies, flat_shipping(1000), strict_attributes=False)


# ---------------------------------------------------------------------------
# Flask application and database
# ---------------------------------------------------------------------------

@pytest.fixture
def app():
    """Application built from TestingConfig with a fresh in-memory database."""
    app = create_app('testing')
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def client(app):
    return app.test_client()
