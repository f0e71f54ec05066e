"""Supplier model."""
from sqlalchemy.orm import relationship
from stock_ledger.database import Base
from stock_ledger.models.party import PartyMixin


class Supplier(PartyMixin, Base):
    """Supplier (proveedor)."""

    __tablename__ = 'supplier'

    # Relationships
    entries = relationship('InventoryEntry', back_populates='supplier')

    def __repr__(self):
        return f"<Supplier(id={self.id}, name='{self.name}', rut='{self.rut}')>"
