"""JSON API endpoints for cart pricing and order placement."""

from flask import Blueprint, jsonify, request
from cstore.pricing import CustomerFields, PaymentContext, create_payment_session, parse_cart
from cstore.store import get_payment_providers, make_engine, make_materializer

api_bp = Blueprint('api', __name__)


def _payload():
    """The JSON request body, or an empty dict when it is not a JSON object."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _preview(data):
    """Price the cart described by a request body."""
    engine = make_engine()
    return engine.compute_total(
        parse_cart(data.get('cart')),
        currency=data.get('currency'),
        coupon_codes=data.get('couponCodes'),
    )


@api_bp.route('/cart/total', methods=['POST'])
def cart_total():
    """Preview the cart total."""
    total = _preview(_payload())
    return jsonify(total.to_dict())


@api_bp.route('/orders', methods=['POST'])
def place_order():
    """Place an order for the submitted cart."""
    data = _payload()
    total = _preview(data)
    token = data.get('checkoutToken')
    order = make_materializer().place_order(
        total,
        CustomerFields.from_payload(data),
        checkout_token=token if isinstance(token, str) else None,
    )
    return jsonify(order.to_dict()), 201


@api_bp.route('/payment-session', methods=['POST'])
def payment_session():
    """Price the cart and collect payment options for it."""
    data = _payload()
    total = _preview(data)
    options = create_payment_session(total, get_payment_providers(), PaymentContext.from_payload(data))
    payload = total.to_dict()
    payload['paymentOptions'] = options
    return jsonify(payload)
