"""Order models."""

from datetime import datetime
import uuid
from sqlalchemy import event, inspect
from cstore.extensions import db
from cstore.pricing.currency import from_minor


# Fields fulfillment may still change once an order exists
MUTABLE_ORDER_FIELDS = {'status', 'updated_at'}


class Order(db.Model):
    """Order model. A frozen snapshot of a cart total at placement."""
    __tablename__ = 'orders'
    
    id = db.Column(db.Integer, primary_key=True)
    order_number = db.Column(db.String(50), unique=True, nullable=False, index=True)
    checkout_token = db.Column(db.String(100), unique=True, index=True)
    user_id = db.Column(db.String(64), index=True)
    
    # Customer
    customer_name = db.Column(db.String(150))
    customer_phone = db.Column(db.String(50))
    customer_email = db.Column(db.String(120))
    customer_address = db.Column(db.String(500))
    customer_comment = db.Column(db.Text)
    shipping_method = db.Column(db.String(50))
    payment_method = db.Column(db.String(50))
    from_url = db.Column(db.String(255))
    
    # Pricing, in `currency`
    currency = db.Column(db.String(10), nullable=False)
    subtotal_old = db.Column(db.Numeric(12, 2), default=0)
    subtotal = db.Column(db.Numeric(12, 2), default=0)
    discount = db.Column(db.Numeric(12, 2), default=0)
    shipping_price = db.Column(db.Numeric(12, 2), default=0)
    grand_total = db.Column(db.Numeric(12, 2), nullable=False)
    quantity_total = db.Column(db.Integer, default=0)
    coupon_codes = db.Column(db.JSON, default=list)  # in applied order
    
    # Status
    status = db.Column(db.String(50), default='pending')
    
    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    # Relationships
    items = db.relationship('OrderItem', backref='order', lazy='selectin',
                            order_by='OrderItem.position', cascade='all, delete-orphan')
    
    @staticmethod
    def generate_order_number():
        """Generate a unique order number."""
        timestamp = datetime.utcnow().strftime('%Y%m%d%H%M')
        unique_id = str(uuid.uuid4().hex)[:6].upper()
        return f'CS{timestamp}{unique_id}'
    
    @classmethod
    def from_total(cls, total, customer, checkout_token=None):
        """Build an order and its items from a CartTotal and CustomerFields."""
        order = cls(
            order_number=cls.generate_order_number(),
            checkout_token=checkout_token,
            user_id=customer.user_id,
            customer_name=customer.customer_name,
            customer_phone=customer.customer_phone,
            customer_email=customer.customer_email,
            customer_address=customer.customer_address,
            customer_comment=customer.customer_comment,
            shipping_method=customer.shipping_method,
            payment_method=customer.payment_method,
            from_url=customer.from_url,
            currency=total.currency,
            subtotal_old=from_minor(total.subtotal_old),
            subtotal=from_minor(total.subtotal),
            discount=from_minor(total.discount),
            shipping_price=from_minor(total.shipping_price),
            grand_total=from_minor(total.grand_total),
            quantity_total=total.quantity_total,
            coupon_codes=list(total.applied_coupons),
        )
        for position, line in enumerate(total.lines):
            order.items.append(OrderItem(
                position=position,
                product_id=line.product_id,
                product_name=line.product_name,
                sku=line.sku,
                categories=[{'id': c.id, 'name': c.name} for c in line.categories],
                quantity=line.quantity,
                unit_price=from_minor(line.unit_price),
                unit_old_price=from_minor(line.unit_old_price),
                subtotal=from_minor(line.subtotal),
                picked_attributes={key: list(values) for key, values in line.picked_attributes.items()},
                main_image=line.main_image,
            ))
        return order
    
    def to_dict(self):
        return {
            'orderNumber': self.order_number,
            'status': self.status,
            'userId': self.user_id,
            'customerName': self.customer_name,
            'customerPhone': self.customer_phone,
            'customerEmail': self.customer_email,
            'customerAddress': self.customer_address,
            'customerComment': self.customer_comment,
            'shippingMethod': self.shipping_method,
            'paymentMethod': self.payment_method,
            'currency': self.currency,
            'subtotalOld': _money(self.subtotal_old),
            'subtotal': _money(self.subtotal),
            'discount': _money(self.discount),
            'shippingPrice': _money(self.shipping_price),
            'grandTotal': _money(self.grand_total),
            'quantityTotal': self.quantity_total,
            'couponCodes': list(self.coupon_codes or []),
            'cart': [item.to_dict() for item in self.items],
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }
    
    def __repr__(self):
        return f'<Order {self.order_number}>'


class OrderItem(db.Model):
    """Order item model. Denormalized copy of a priced cart line."""
    __tablename__ = 'order_items'
    
    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey('orders.id'), nullable=False)
    position = db.Column(db.Integer, nullable=False, default=0)
    product_id = db.Column(db.String(36), nullable=False)  # Not a foreign key: products may be deleted later
    product_name = db.Column(db.String(150), nullable=False)  # Snapshot of product name
    sku = db.Column(db.String(64))
    categories = db.Column(db.JSON, default=list)  # [{id, name}]
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    unit_old_price = db.Column(db.Numeric(12, 2))
    subtotal = db.Column(db.Numeric(12, 2), nullable=False)
    picked_attributes = db.Column(db.JSON, default=dict)
    main_image = db.Column(db.String(255))
    
    def to_dict(self):
        return {
            'productId': self.product_id,
            'name': self.product_name,
            'sku': self.sku,
            'categories': list(self.categories or []),
            'amount': self.quantity,
            'price': _money(self.unit_price),
            'oldPrice': _money(self.unit_old_price),
            'subtotal': _money(self.subtotal),
            'pickedAttributes': dict(self.picked_attributes or {}),
            'mainImage': self.main_image,
        }
    
    def __repr__(self):
        return f'<OrderItem {self.product_name} x {self.quantity}>'


def _money(value):
    if value is None:
        return None
    return f'{value:.2f}'


@event.listens_for(Order, 'before_update')
def _freeze_order(mapper, connection, target):
    state = inspect(target)
    changed = {
        attr.key for attr in state.attrs
        if attr.key not in MUTABLE_ORDER_FIELDS and attr.history.has_changes()
    }
    changed.discard('items')
    if changed:
        raise ValueError(f'Order fields are immutable: {", ".join(sorted(changed))}')


@event.listens_for(OrderItem, 'before_update')
def _freeze_order_item(mapper, connection, target):
    raise ValueError('Order items are immutable')
