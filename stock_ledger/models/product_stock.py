"""Product Stock model."""
from sqlalchemy import Column, BigInteger, Integer, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from stock_ledger.database import Base


class ProductStock(Base):
    """Product Stock - 1:1 with Product, the authoritative on-hand quantity."""

    __tablename__ = 'product_stock'
    __table_args__ = (
        CheckConstraint('quantity >= 0', name='ck_product_stock_non_negative'),
    )

    product_id = Column(
        BigInteger().with_variant(Integer, 'sqlite'),
        ForeignKey('product.id', ondelete='CASCADE'),
        primary_key=True,
    )
    quantity = Column(BigInteger, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationship
    product = relationship('Product', back_populates='stock')

    def __repr__(self):
        return f"<ProductStock(product_id={self.product_id}, quantity={self.quantity})>"
