"""Counterparty columns shared by customers and suppliers."""
from sqlalchemy import Column, BigInteger, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func


class PartyMixin:
    """Name, RUT and contact data of a customer or supplier."""

    id = Column(BigInteger().with_variant(Integer, 'sqlite'), primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    rut = Column(String(12), nullable=False, unique=True)
    address = Column(String(255), nullable=False)
    phone = Column(String(12), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'rut': self.rut,
            'address': self.address,
            'phone': self.phone,
            'email': self.email,
            'isActive': self.is_active,
        }
