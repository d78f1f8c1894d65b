"""Tests for cart normalization and the cart total engine."""

import json
from dataclasses import replace

import pytest

from cstore.errors import InvalidAttributeSelection, UnknownCurrency
from cstore.pricing import (CartEngine, CartLine, Catalog, ProductRecord, normalize_line, parse_cart,
                            sanitize_picked_attributes)
from cstore.pricing.cart import MAX_ATTRIBUTE_KEYS, MAX_ATTRIBUTE_VALUES

from conftest import NOW


# ── Input normalization ──────────────────────────────────────────────────

class TestNormalizeLine:
    def test_maps_camel_case_payload(self):
        line = normalize_line({'productId': 'tshirt', 'amount': 2, 'pickedAttributes': {'Color': ['Red']}})
        assert line == CartLine('tshirt', 2, {'Color': ('Red',)})

    def test_accepts_nested_product_and_quantity(self):
        line = normalize_line({'product': {'id': 7}, 'quantity': '3'})
        assert line.product_id == '7'
        assert line.quantity == 3

    def test_missing_amount_means_one(self):
        assert normalize_line({'productId': 'tshirt'}).quantity == 1

    @pytest.mark.parametrize('amount', [0, -1, 'two', 1.5, True, None])
    def test_invalid_quantity_dropped(self, amount):
        assert normalize_line({'productId': 'tshirt', 'amount': amount}) is None

    @pytest.mark.parametrize('raw', [None, 'tshirt', 42, {'amount': 1}, {'productId': ''}])
    def test_malformed_entry_dropped(self, raw):
        assert normalize_line(raw) is None


class TestSanitizePickedAttributes:
    def test_drops_empty_keys(self):
        assert sanitize_picked_attributes({'Color': [], 'Size': ['S']}) == {'Size': ('S',)}

    def test_bare_string_is_one_value(self):
        assert sanitize_picked_attributes({'Color': 'Red'}) == {'Color': ('Red',)}

    def test_dedupes_values(self):
        assert sanitize_picked_attributes({'Print': ['Logo', 'Logo', 'Stripe']}) == {'Print': ('Logo', 'Stripe')}

    def test_too_many_keys_drops_everything(self):
        picked = {f'k{i}': ['v'] for i in range(MAX_ATTRIBUTE_KEYS + 1)}
        assert sanitize_picked_attributes(picked) == {}

    def test_cap_is_inclusive(self):
        picked = {f'k{i}': ['v'] for i in range(MAX_ATTRIBUTE_KEYS)}
        assert len(sanitize_picked_attributes(picked)) == MAX_ATTRIBUTE_KEYS

    def test_too_many_values_drops_key(self):
        picked = {'Color': [str(i) for i in range(MAX_ATTRIBUTE_VALUES + 1)], 'Size': ['S']}
        assert sanitize_picked_attributes(picked) == {'Size': ('S',)}

    def test_not_a_mapping(self):
        assert sanitize_picked_attributes(['Color']) == {}


class TestParseCart:
    def test_json_string(self):
        payload = json.dumps([{'productId': 'tshirt', 'amount': 2}, {'productId': 'x', 'amount': 0}])
        assert parse_cart(payload) == [CartLine('tshirt', 2, {})]

    def test_invalid_json_is_empty_cart(self):
        assert parse_cart('{not json') == []

    def test_non_list_is_empty_cart(self):
        assert parse_cart({'productId': 'tshirt'}) == []
        assert parse_cart(None) == []


# ── Engine ───────────────────────────────────────────────────────────────

class TestComputeTotal:
    def test_simple_cart(self, engine):
        """price=100, oldPrice=150, quantity 2, shipping 10."""
        total = engine.compute_total([CartLine('tshirt', 2)], now=NOW)
        assert total.subtotal == 20000
        assert total.subtotal_old == 30000
        assert total.discount == 0
        assert total.shipping_price == 1000
        assert total.grand_total == 21000
        assert total.quantity_total == 2
        assert total.applied_coupons == ()
        assert total.currency == 'USD'

    def test_stacked_coupons(self, engine):
        total = engine.compute_total([CartLine('tshirt', 2)], coupon_codes=['SAVE10', 'FLAT5'], now=NOW)
        assert total.discount == 2500
        assert total.grand_total == 20000 - 2500 + 1000
        assert total.applied_coupons == ('SAVE10', 'FLAT5')

    def test_serialized_money_is_fixed_two_places(self, engine):
        data = engine.compute_total([{'productId': 'tshirt', 'amount': 2}], now=NOW).to_dict()
        assert data['subtotal'] == '200.00'
        assert data['grandTotal'] == '210.00'
        assert data['cart'][0]['price'] == '100.00'
        assert data['cart'][0]['oldPrice'] == '150.00'
        assert data['quantityTotal'] == 2

    def test_idempotent(self, engine):
        lines = [{'productId': 'tshirt', 'amount': 3, 'pickedAttributes': {'Size': ['XL'], 'Color': ['Red']}}]
        first = engine.compute_total(lines, 'EUR', ['SAVE10', 'FLAT5'], now=NOW)
        second = engine.compute_total(lines, 'EUR', ['SAVE10', 'FLAT5'], now=NOW)
        assert first == second
        assert json.dumps(first.to_dict()) == json.dumps(second.to_dict())

    def test_discount_never_makes_total_negative(self, engine):
        total = engine.compute_total([CartLine('tshirt', 1)], coupon_codes=['HUGE'], now=NOW)
        assert total.discount == total.subtotal
        assert total.grand_total == total.shipping_price

    def test_attribute_prices_lines(self, engine):
        total = engine.compute_total([CartLine('tshirt', 2, {'Color': ('Red',)})], now=NOW)
        assert total.lines[0].unit_price == 11000
        assert total.subtotal == 22000

    def test_converts_to_active_currency(self, engine):
        total = engine.compute_total([CartLine('tshirt', 2)], 'EUR', ['SAVE10'], now=NOW)
        assert total.currency == 'EUR'
        assert total.subtotal == 16000
        assert total.discount == 1600
        assert total.shipping_price == 800
        assert total.grand_total == 16000 - 1600 + 800
        assert total.lines[0].unit_price == 8000

    def test_grand_total_consistent_after_rounding(self, engine, memory_catalog):
        memory_catalog.add_product(ProductRecord(id='odd', name='Odd', price=333))
        total = engine.compute_total([CartLine('odd', 3)], 'EUR', ['SAVE10'], now=NOW)
        assert total.grand_total == max(0, total.subtotal - total.discount) + total.shipping_price

    def test_unknown_currency(self, engine):
        with pytest.raises(UnknownCurrency):
            engine.compute_total([CartLine('tshirt', 1)], 'GBP', now=NOW)

    def test_strict_invalid_attribute(self, engine):
        with pytest.raises(InvalidAttributeSelection):
            engine.compute_total([CartLine('tshirt', 1, {'Color': ('Purple',)})], now=NOW)

    def test_lenient_invalid_attribute_uses_base_price(self, lenient_engine):
        total = lenient_engine.compute_total([CartLine('tshirt', 1, {'Color': ('Purple',)})], now=NOW)
        assert total.lines[0].unit_price == 10000
        assert total.lines[0].picked_attributes == {}

    def test_empty_cart_has_no_shipping(self, engine):
        total = engine.compute_total([], now=NOW)
        assert total.is_empty
        assert total.grand_total == 0

    def test_keeps_source_lines_and_requested_coupons(self, engine):
        total = engine.compute_total([{'productId': 'tshirt', 'amount': 1}], coupon_codes=['save10', 'SAVE10'], now=NOW)
        assert total.source_lines == (CartLine('tshirt', 1, {}),)
        assert total.requested_coupons == ('save10',)
        assert total.applied_coupons == ('SAVE10',)


class TestUnavailableProducts:
    def test_missing_product_excluded(self, engine):
        total = engine.compute_total([CartLine('ghost', 1), CartLine('tshirt', 1)], now=NOW)
        assert [line.product_id for line in total.lines] == ['tshirt']
        assert total.subtotal == 10000

    def test_disabled_product_excluded(self, engine, memory_catalog, tshirt):
        memory_catalog.add_product(replace(tshirt, is_enabled=False))
        assert engine.compute_total([CartLine('tshirt', 1)], now=NOW).is_empty

    def test_out_of_stock_product_excluded(self, engine, memory_catalog, tshirt):
        memory_catalog.add_product(replace(tshirt, stock_amount=0))
        assert engine.compute_total([CartLine('tshirt', 1)], now=NOW).is_empty
        memory_catalog.add_product(replace(tshirt, stock_status='out_of_stock'))
        assert engine.compute_total([CartLine('tshirt', 1)], now=NOW).is_empty

    def test_lookup_errors_propagate(self, currencies):
        def broken(product_id):
            raise ConnectionError('catalog down')

        engine = CartEngine(Catalog(broken, lambda: [], lambda codes: []), currencies)
        with pytest.raises(ConnectionError):
            engine.compute_total([CartLine('tshirt', 1)], now=NOW)
