"""Seed script to populate database with sample catalog data."""

from datetime import datetime, timedelta
from cstore import create_app, db
from cstore.models import Attribute, Category, Coupon, Product


def seed_database():
    """Seed the database with sample data."""
    app = create_app()
    
    with app.app_context():
        # Create tables
        db.create_all()
        
        # Check if already seeded
        if Coupon.query.filter_by(code='SAVE10').first():
            print('Database already seeded!')
            return
        
        print('Seeding database...')
        
        # Attributes
        attributes = [
            Attribute(key='Color', type='radio', values=['Black', 'White', 'Red']),
            Attribute(key='Size', type='radio', values=['S', 'M', 'L', 'XL']),
            Attribute(key='Extras', type='checkbox', values=['Gift wrap', 'Engraving']),
        ]
        db.session.add_all(attributes)
        
        # Categories
        categories = {name: Category(name=name) for name in ['Apparel', 'Accessories', 'Sale']}
        db.session.add_all(categories.values())
        
        products_data = [
            {
                'name': 'Classic T-Shirt',
                'sku': 'TSH-001',
                'price': 100,
                'old_price': 150,
                'categories': ['Apparel', 'Sale'],
                'attributes': [
                    {'key': 'Color', 'values': [
                        {'value': 'Black'},
                        {'value': 'White', 'productVariant': {'mainImage': '/images/tshirt-white.jpg'}},
                        {'value': 'Red', 'productVariant': {'price': 110, 'oldPrice': 160}},
                    ]},
                    {'key': 'Size', 'values': [
                        {'value': 'S'}, {'value': 'M'}, {'value': 'L'},
                        {'value': 'XL', 'productVariant': {'price': 120}},
                    ]},
                ],
            },
            {
                'name': 'Leather Wallet',
                'sku': 'WAL-010',
                'price': 45,
                'categories': ['Accessories'],
                'stock_amount': 25,
                'attributes': [
                    {'key': 'Extras', 'values': [
                        {'value': 'Gift wrap'},
                        {'value': 'Engraving', 'productVariant': {'price': 55,
                                                                  'description': 'Engraved with your initials'}},
                    ]},
                ],
            },
            {
                'name': 'Canvas Tote',
                'sku': 'TOT-003',
                'price': 20,
                'categories': ['Accessories'],
                'stock_status': 'out_of_stock',
            },
        ]
        
        for data in products_data:
            product = Product(
                name=data['name'],
                sku=data['sku'],
                price=data['price'],
                old_price=data.get('old_price'),
                attributes=data.get('attributes', []),
                stock_amount=data.get('stock_amount'),
                stock_status=data.get('stock_status', 'in_stock'),
                categories=[categories[name] for name in data['categories']],
            )
            db.session.add(product)
        
        # Coupons
        coupons = [
            Coupon(code='SAVE10', description='10% off your order', discount_type='percentage',
                   discount_value=10, max_discount=100),
            Coupon(code='FLAT5', description='5 off any order', discount_type='fixed',
                   discount_value=5),
            Coupon(code='ONCE', description='20 off, single use', discount_type='fixed',
                   discount_value=20, usage_limit=1, min_order_amount=50,
                   valid_until=datetime.utcnow() + timedelta(days=30)),
        ]
        db.session.add_all(coupons)
        
        db.session.commit()
        print('Database seeded successfully!')
        print('\nCoupon Codes: SAVE10 (10% off, max 100), FLAT5 (5 off), ONCE (20 off, one use)')


if __name__ == '__main__':
    seed_database()
