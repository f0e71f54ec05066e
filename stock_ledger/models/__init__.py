"""Models package - exports all SQLAlchemy models."""
# Catalog
from stock_ledger.models.product import Product, ProductType
from stock_ledger.models.product_stock import ProductStock

# Stakeholders
from stock_ledger.models.customer import Customer
from stock_ledger.models.supplier import Supplier

# Ledger
from stock_ledger.models.inventory_entry import InventoryEntry, InventoryEntryDetail
from stock_ledger.models.inventory_exit import InventoryExit, InventoryExitDetail

__all__ = [
    'Product', 'ProductType', 'ProductStock',
    'Customer', 'Supplier',
    'InventoryEntry', 'InventoryEntryDetail',
    'InventoryExit', 'InventoryExitDetail',
]
