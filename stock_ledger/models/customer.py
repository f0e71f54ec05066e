"""Customer model."""
from sqlalchemy.orm import relationship
from stock_ledger.database import Base
from stock_ledger.models.party import PartyMixin


class Customer(PartyMixin, Base):
    """Customer (cliente)."""

    __tablename__ = 'customer'

    # Relationships
    exits = relationship('InventoryExit', back_populates='customer')

    def __repr__(self):
        return f"<Customer(id={self.id}, name='{self.name}', rut='{self.rut}')>"
