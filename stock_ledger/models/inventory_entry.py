"""Inventory Entry models (entrada de inventario)."""
from sqlalchemy import Column, BigInteger, Integer, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from stock_ledger.database import Base

_ID = BigInteger().with_variant(Integer, 'sqlite')


class InventoryEntry(Base):
    """Inbound movement: stock received from a supplier."""

    __tablename__ = 'inventory_entry'

    id = Column(_ID, primary_key=True, autoincrement=True)
    supplier_id = Column(_ID, ForeignKey('supplier.id'), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), index=True)

    # Relationships
    supplier = relationship('Supplier', back_populates='entries')
    details = relationship(
        'InventoryEntryDetail',
        back_populates='entry',
        cascade='all, delete-orphan',
        order_by='InventoryEntryDetail.id',
    )

    def __repr__(self):
        return f"<InventoryEntry(id={self.id}, supplier_id={self.supplier_id})>"

    @property
    def total_price(self):
        return sum(detail.total_price for detail in self.details)

    def to_dict(self):
        return {
            'id': self.id,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'supplier': self.supplier.to_dict() if self.supplier else None,
            'details': [detail.to_dict() for detail in self.details],
            'totalPrice': self.total_price,
        }


class InventoryEntryDetail(Base):
    """Entry line: quantity of one product and its purchase price."""

    __tablename__ = 'inventory_entry_detail'
    __table_args__ = (
        CheckConstraint('quantity > 0', name='ck_entry_detail_quantity_positive'),
        CheckConstraint('purchase_price >= 0', name='ck_entry_detail_price_non_negative'),
        CheckConstraint('total_price = quantity * purchase_price', name='ck_entry_detail_total'),
    )

    id = Column(_ID, primary_key=True, autoincrement=True)
    entry_id = Column(_ID, ForeignKey('inventory_entry.id', ondelete='CASCADE'), nullable=False, index=True)
    product_id = Column(_ID, ForeignKey('product.id'), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    purchase_price = Column(Integer, nullable=False)
    total_price = Column(BigInteger, nullable=False)

    # Relationships
    entry = relationship('InventoryEntry', back_populates='details')
    product = relationship('Product')

    def __repr__(self):
        return f"<InventoryEntryDetail(id={self.id}, product_id={self.product_id}, quantity={self.quantity})>"

    def to_dict(self):
        return {
            'id': self.id,
            'productId': self.product_id,
            'product': self.product.name if self.product else None,
            'quantity': self.quantity,
            'purchasePrice': self.purchase_price,
            'totalPrice': self.total_price,
        }
