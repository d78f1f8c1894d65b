"""
Coupon Resolver.

Coupons stack sequentially in the order the client listed them. Each one is
validated against the pre-discount subtotal and then computed against the
running discounted subtotal, which is floored at zero after every step.
Unknown or unusable codes are dropped, never fatal.
"""

from cstore.utils.logger import get_logger

from .types import CouponResult

logger = get_logger(__name__)


def normalize_codes(codes):
    """Strip and deduplicate codes case-insensitively, keeping the first spelling."""
    if isinstance(codes, str):
        codes = [codes]
    if not isinstance(codes, (list, tuple)):
        return []
    seen = set()
    normalized = []
    for code in codes:
        if not isinstance(code, str):
            continue
        code = code.strip()
        key = code.upper()
        if not code or key in seen:
            continue
        seen.add(key)
        normalized.append(code)
    return normalized


def apply_coupons(cart_subtotal, codes, coupon_lookup, now):
    """
    Resolve coupon codes against a cart subtotal.

    Args:
        cart_subtotal: Pre-discount subtotal in minor units.
        codes: Codes in client order; duplicates are ignored.
        coupon_lookup: Callable taking a list of codes and returning
            CouponRecords (or None when nothing matched).
        now: Point in time used for validity windows.

    Returns:
        CouponResult with the total discount, the codes that reduced the
        subtotal, and a code -> reason mapping for the dropped ones.
    """
    codes = normalize_codes(codes)
    if not codes:
        return CouponResult(discount=0, applied_codes=())

    coupons = {coupon.code.upper(): coupon for coupon in (coupon_lookup(codes) or ())}

    running = cart_subtotal
    applied = []
    rejected = {}
    for code in codes:
        coupon = coupons.get(code.upper())
        if coupon is None:
            rejected[code] = 'Invalid coupon code'
            continue

        is_valid, message = coupon.is_valid(cart_subtotal, now)
        if not is_valid:
            rejected[coupon.code] = message
            continue

        discount = coupon.calculate_discount(running)
        if discount <= 0:
            rejected[coupon.code] = 'Coupon does not reduce the total'
            continue
        running = max(0, running - discount)
        applied.append(coupon.code)

    for code, reason in rejected.items():
        logger.debug('Coupon %s dropped: %s', code, reason)

    return CouponResult(
        discount=cart_subtotal - running,
        applied_codes=tuple(applied),
        rejected=rejected,
    )
