"""Inventory Exit models (salida de inventario)."""
from sqlalchemy import Column, BigInteger, Integer, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from stock_ledger.database import Base

_ID = BigInteger().with_variant(Integer, 'sqlite')


class InventoryExit(Base):
    """Outbound movement: stock sold to a customer."""

    __tablename__ = 'inventory_exit'

    id = Column(_ID, primary_key=True, autoincrement=True)
    customer_id = Column(_ID, ForeignKey('customer.id'), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), index=True)

    # Relationships
    customer = relationship('Customer', back_populates='exits')
    details = relationship(
        'InventoryExitDetail',
        back_populates='exit',
        cascade='all, delete-orphan',
        order_by='InventoryExitDetail.id',
    )

    def __repr__(self):
        return f"<InventoryExit(id={self.id}, customer_id={self.customer_id})>"

    @property
    def total_price(self):
        return sum(detail.total_price for detail in self.details)

    def to_dict(self):
        return {
            'id': self.id,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'customer': self.customer.to_dict() if self.customer else None,
            'details': [detail.to_dict() for detail in self.details],
            'totalPrice': self.total_price,
        }


class InventoryExitDetail(Base):
    """Exit line: quantity of one product at the sale price of the moment."""

    __tablename__ = 'inventory_exit_detail'
    __table_args__ = (
        CheckConstraint('quantity > 0', name='ck_exit_detail_quantity_positive'),
        CheckConstraint('total_price = quantity * sale_price', name='ck_exit_detail_total'),
    )

    id = Column(_ID, primary_key=True, autoincrement=True)
    exit_id = Column(_ID, ForeignKey('inventory_exit.id', ondelete='CASCADE'), nullable=False, index=True)
    product_id = Column(_ID, ForeignKey('product.id'), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    sale_price = Column(Integer, nullable=False)
    total_price = Column(BigInteger, nullable=False)

    # Relationships
    exit = relationship('InventoryExit', back_populates='details')
    product = relationship('Product')

    def __repr__(self):
        return f"<InventoryExitDetail(id={self.id}, product_id={self.product_id}, quantity={self.quantity})>"

    def to_dict(self):
        return {
            'id': self.id,
            'productId': self.product_id,
            'product': self.product.name if self.product else None,
            'quantity': self.quantity,
            'salePrice': self.sale_price,
            'totalPrice': self.total_price,
        }
