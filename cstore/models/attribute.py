"""Attribute model."""

from datetime import datetime
from cstore.extensions import db
from cstore.pricing.types import AttributeRecord, CHECKBOX


class Attribute(db.Model):
    """Global product attribute, e.g. color or size."""
    __tablename__ = 'attributes'
    
    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(100), unique=True, nullable=False, index=True)
    type = db.Column(db.String(20), default=CHECKBOX)  # radio, checkbox
    values = db.Column(db.JSON, default=list)  # allowed values in display order
    icon = db.Column(db.String(255))
    is_enabled = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    
    def to_record(self):
        return AttributeRecord(
            key=self.key,
            type=self.type or CHECKBOX,
            values=tuple(str(v) for v in self.values or ()),
        )
    
    def __repr__(self):
        return f'<Attribute {self.key}>'
