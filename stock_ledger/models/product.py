"""Product model."""
import enum
from sqlalchemy import Column, BigInteger, Integer, Boolean, DateTime, Enum, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from stock_ledger.database import Base


class ProductType(enum.Enum):
    """Aggregate product types sold by the business."""
    BASE_ESTABILIZADA = "BASE_ESTABILIZADA"
    GRAVILLA = "GRAVILLA"
    MAICILLO = "MAICILLO"
    BOLON = "BOLON"
    ARENA = "ARENA"
    GRAVA = "GRAVA"
    RIPIO = "RIPIO"
    RELLENO = "RELLENO"


class Product(Base):
    """Product model."""

    __tablename__ = 'product'
    __table_args__ = (
        CheckConstraint('sale_price > 0', name='ck_product_sale_price_positive'),
    )

    id = Column(BigInteger().with_variant(Integer, 'sqlite'), primary_key=True, autoincrement=True)
    product_type = Column(Enum(ProductType, name='product_type'), nullable=False, unique=True)
    sale_price = Column(Integer, nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Cascade delete-orphan: the stock row lives and dies with the product
    stock = relationship('ProductStock', uselist=False, back_populates='product', cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Product(id={self.id}, type='{self.product_type.value}', sale_price={self.sale_price})>"

    @property
    def name(self):
        return self.product_type.value

    @property
    def quantity(self):
        """Get on hand quantity from stock."""
        if self.stock:
            return self.stock.quantity
        return 0

    def to_dict(self):
        return {
            'id': self.id,
            'product': self.product_type.value,
            'salePrice': self.sale_price,
            'active': self.active,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }
