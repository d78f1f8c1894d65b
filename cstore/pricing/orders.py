"""
Order Materializer.

Freezes a cart total and the customer's fields into an order. The total is
recomputed right before commit, so stale previews never get charged, and
coupon usage is claimed in the same transaction as the order insert.
"""

from cstore.errors import CartEmpty, CouponExhausted
from cstore.utils.logger import get_logger

from .types import PaymentContext

logger = get_logger(__name__)

FAIL = 'fail'
DROP = 'drop'
EXHAUSTED_POLICIES = (FAIL, DROP)


class OrderMaterializer:
    """
    Places orders through a repository.

    The repository must provide:
        find_by_checkout_token(token) -> order or None
        transaction() -> context manager committing on success, rolling back on error
        claim_coupon(code) -> bool, an atomic compare-and-increment of used_times
        create_order(total, customer, checkout_token) -> order
    """

    def __init__(self, engine, repository, exhausted_policy=FAIL):
        if exhausted_policy not in EXHAUSTED_POLICIES:
            raise ValueError(f'Unknown coupon exhausted policy: {exhausted_policy!r}')
        self.engine = engine
        self.repository = repository
        self.exhausted_policy = exhausted_policy

    def revalidate(self, cart_total, coupon_codes, now=None):
        """Recompute a previewed total from its source lines."""
        fresh = self.engine.compute_total(
            cart_total.source_lines,
            currency=cart_total.currency,
            coupon_codes=coupon_codes,
            now=now,
        )
        if fresh.is_empty:
            raise CartEmpty()
        return fresh

    def place_order(self, cart_total, customer, checkout_token=None, now=None):
        """
        Place an order for a previewed cart total.

        Raises:
            CartEmpty: no line has a resolvable product any more.
            CouponExhausted: under the 'fail' policy, a previewed coupon stopped
                being usable, or a requested coupon has reached its usage limit.
        """
        if checkout_token:
            existing = self.repository.find_by_checkout_token(checkout_token)
            if existing is not None:
                logger.info('Checkout token %s already placed as order %s', checkout_token, existing.order_number)
                return existing

        codes = list(cart_total.requested_coupons or cart_total.applied_coupons)
        while True:
            fresh = self.revalidate(cart_total, codes, now)

            lost = self._lost_coupons(cart_total, fresh)
            if lost:
                if self.exhausted_policy == FAIL:
                    raise CouponExhausted(lost)
                logger.warning('Placing order without coupons: %s', ', '.join(lost))

            try:
                return self._commit(fresh, customer, checkout_token)
            except CouponExhausted as exc:
                if self.exhausted_policy == FAIL:
                    raise
                logger.warning('Coupons exhausted during placement, retrying without: %s', ', '.join(exc.codes))
                codes = [code for code in fresh.applied_coupons if code not in exc.codes]

    @staticmethod
    def _lost_coupons(previewed, fresh):
        """Previewed coupons that no longer apply, plus requested ones that ran out."""
        applied = {code.upper() for code in fresh.applied_coupons}
        lost = [code for code in previewed.applied_coupons if code.upper() not in applied]
        for code in previewed.exhausted_coupons + fresh.exhausted_coupons:
            if code.upper() not in applied and code not in lost:
                lost.append(code)
        return lost

    def _commit(self, total, customer, checkout_token):
        with self.repository.transaction():
            exhausted = [code for code in total.applied_coupons if not self.repository.claim_coupon(code)]
            if exhausted:
                raise CouponExhausted(exhausted)
            order = self.repository.create_order(total, customer, checkout_token)

        logger.info('Order %s placed: %d lines, total %s',
                    order.order_number, len(total.lines),
                    self.engine.currencies.format_price(total.grand_total, total.currency))
        return order


def create_payment_session(cart_total, providers, context=None):
    """
    Collect payment options for a priced cart.

    Args:
        cart_total: CartTotal to be paid.
        providers: Mapping of provider name -> callable(cart_total, context)
            returning an option dict, or None when the provider does not apply.
        context: PaymentContext with the success, cancel and origin URLs.

    Returns:
        List of payment option dicts in provider registration order.
    """
    if cart_total.is_empty:
        raise CartEmpty()
    context = context or PaymentContext()

    options = []
    for name, provider in providers.items():
        option = provider(cart_total, context)
        if option is None:
            logger.debug('Payment provider %s skipped this cart', name)
            continue
        options.append(option)
    return options
