"""Product and Category models."""

from datetime import datetime
import uuid
from cstore.extensions import db
from cstore.pricing.currency import to_minor
from cstore.pricing.types import (ProductRecord, ProductAttribute, AttributeValue,
                                  VariantOverride, CategoryRecord, IN_STOCK)


product_categories = db.Table(
    'product_categories',
    db.Column('product_id', db.String(36), db.ForeignKey('products.id'), primary_key=True),
    db.Column('category_id', db.Integer, db.ForeignKey('categories.id'), primary_key=True)
)


class Category(db.Model):
    """Product category model."""
    __tablename__ = 'categories'
    
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.String(255))
    is_enabled = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    
    def to_record(self):
        return CategoryRecord(id=str(self.id), name=self.name)
    
    def __repr__(self):
        return f'<Category {self.name}>'


class Product(db.Model):
    """Product model."""
    __tablename__ = 'products'
    
    id = db.Column(db.String(36), primary_key=True, default=lambda: uuid.uuid4().hex)
    name = db.Column(db.String(150), nullable=False)
    sku = db.Column(db.String(64), index=True)
    description = db.Column(db.Text)
    price = db.Column(db.Numeric(12, 2))
    old_price = db.Column(db.Numeric(12, 2))  # "was" price shown next to a sale price
    main_image = db.Column(db.String(255))
    images = db.Column(db.JSON, default=list)
    # [{key, values: [{value, productVariant: {name, price, oldPrice, mainImage, images, description}}]}]
    attributes = db.Column(db.JSON, default=list)
    stock_amount = db.Column(db.Integer)  # Null when stock is not tracked
    stock_status = db.Column(db.String(20), default=IN_STOCK)  # in_stock, out_of_stock
    is_enabled = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    # Relationships
    categories = db.relationship('Category', secondary=product_categories, lazy='selectin',
                                 backref=db.backref('products', lazy='dynamic'))
    
    @staticmethod
    def _variant_record(variant):
        """Build a VariantOverride from its stored camelCase form."""
        if not variant:
            return None
        images = variant.get('images')
        return VariantOverride(
            name=variant.get('name'),
            price=to_minor(variant.get('price')),
            old_price=to_minor(variant.get('oldPrice')),
            main_image=variant.get('mainImage'),
            images=tuple(images) if images is not None else None,
            description=variant.get('description'),
        )
    
    def attribute_records(self):
        """Get the attribute schema in declared order."""
        records = []
        for attribute in self.attributes or []:
            values = tuple(
                AttributeValue(value=str(v.get('value')), variant=self._variant_record(v.get('productVariant')))
                for v in attribute.get('values') or []
            )
            records.append(ProductAttribute(key=attribute['key'], values=values))
        return tuple(records)
    
    def to_record(self):
        """Snapshot the product for the pricing engine."""
        return ProductRecord(
            id=self.id,
            name=self.name,
            price=to_minor(self.price),
            old_price=to_minor(self.old_price),
            sku=self.sku,
            main_image=self.main_image,
            images=tuple(self.images or ()),
            description=self.description,
            attributes=self.attribute_records(),
            categories=tuple(category.to_record() for category in self.categories),
            stock_amount=self.stock_amount,
            stock_status=self.stock_status or IN_STOCK,
            is_enabled=bool(self.is_enabled),
        )
    
    def __repr__(self):
        return f'<Product {self.name}>'
