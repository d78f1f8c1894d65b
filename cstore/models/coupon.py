"""Coupon model."""

from datetime import datetime
from sqlalchemy import func, or_
from cstore.extensions import db
from cstore.pricing.currency import to_minor
from cstore.pricing.types import CouponRecord, PERCENTAGE


class Coupon(db.Model):
    """Discount coupon model."""
    __tablename__ = 'coupons'
    
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(50), unique=True, nullable=False, index=True)
    description = db.Column(db.String(255))
    discount_type = db.Column(db.String(20), nullable=False)  # percentage, fixed
    discount_value = db.Column(db.Numeric(12, 2), nullable=False)
    min_order_amount = db.Column(db.Numeric(12, 2), default=0)
    max_discount = db.Column(db.Numeric(12, 2))  # Maximum discount amount for percentage coupons
    usage_limit = db.Column(db.Integer)  # Null for unlimited
    used_times = db.Column(db.Integer, default=0, nullable=False)
    valid_from = db.Column(db.DateTime, default=datetime.utcnow)
    valid_until = db.Column(db.DateTime)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    
    @classmethod
    def get_by_codes(cls, codes):
        """Get coupons matching any of the codes, ignoring case."""
        keys = [code.upper() for code in codes]
        if not keys:
            return []
        return cls.query.filter(func.upper(cls.code).in_(keys)).all()
    
    @classmethod
    def claim(cls, code):
        """
        Count one use of a coupon if its usage limit allows it.
        
        Single conditional UPDATE, so two concurrent checkouts cannot both
        take the last remaining use. Returns True when a use was counted.
        """
        updated = cls.query.filter(
            func.upper(cls.code) == code.upper(),
            or_(cls.usage_limit.is_(None), cls.used_times < cls.usage_limit)
        ).update({cls.used_times: cls.used_times + 1}, synchronize_session=False)
        return updated == 1
    
    def to_record(self):
        """Snapshot the coupon for the pricing engine."""
        if self.discount_type == PERCENTAGE:
            discount_value = self.discount_value
        else:  # fixed
            discount_value = to_minor(self.discount_value)
        return CouponRecord(
            code=self.code,
            discount_type=self.discount_type,
            discount_value=discount_value,
            min_order_amount=to_minor(self.min_order_amount) or 0,
            max_discount=to_minor(self.max_discount),
            usage_limit=self.usage_limit,
            used_times=self.used_times or 0,
            valid_from=self.valid_from,
            valid_until=self.valid_until,
            is_active=bool(self.is_active),
        )
    
    def __repr__(self):
        return f'<Coupon {self.code}>'
