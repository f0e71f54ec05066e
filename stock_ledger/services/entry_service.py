"""Inventory entry service: inbound movements from suppliers."""
import logging
from typing import List

from sqlalchemy.orm import selectinload

from stock_ledger.exceptions import ValidationError, EntryNotFoundError
from stock_ledger.models import InventoryEntry, InventoryEntryDetail
from stock_ledger.services import catalog_service, party_service, stock_service
from stock_ledger.services.transaction_service import atomic_scope
from stock_ledger.services.validation import require_details, require_int, MAX_ID, MAX_QUANTITY, MAX_PRICE
from stock_ledger.utils.rut import normalize_rut

logger = logging.getLogger(__name__)


def _validate_lines(details) -> List[dict]:
    """Shape checks only; no lookups happen here."""
    lines = []
    for index, line in enumerate(require_details(details), start=1):
        lines.append({
            'product_id': require_int(line, 'productId', index, minimum=1, maximum=MAX_ID),
            'quantity': require_int(line, 'quantity', index, minimum=1, maximum=MAX_QUANTITY),
            'purchase_price': require_int(line, 'purchasePrice', index, minimum=0, maximum=MAX_PRICE),
        })
    return lines


def create_entry(session, supplier_rut: str, details) -> InventoryEntry:
    """
    Create an inventory entry and increment stock, all or nothing.

    Steps:
    1. Validate RUT format and line shapes (no side effects)
    2. Resolve supplier by RUT
    3. Resolve every product (inactive products may be restocked)
    4. Lock stock rows in product id order
    5. Persist header + details with total = quantity * purchase price
    6. Increment stock for each line
    7. Commit

    Args:
        session: SQLAlchemy session
        supplier_rut: supplier RUT, with or without periods
        details: list of {productId, quantity, purchasePrice}

    Returns:
        The committed InventoryEntry

    Raises:
        ValidationError / InvalidRutError: malformed input
        CounterpartyNotFoundError: unknown supplier
        ProductNotFoundError: unknown product id
    """
    if not isinstance(supplier_rut, str) or not supplier_rut.strip():
        raise ValidationError('El RUT del proveedor es obligatorio.')
    lines = _validate_lines(details)
    # Fails fast on a malformed RUT, before the scope opens
    normalize_rut(supplier_rut)

    with atomic_scope(session, 'entry.create'):
        supplier = party_service.find_supplier_by_rut(session, supplier_rut)
        catalog_service.get_products(session, [line['product_id'] for line in lines])
        stock_service.lock_stocks(session, [line['product_id'] for line in lines])

        entry = InventoryEntry(supplier=supplier)
        for line in lines:
            entry.details.append(InventoryEntryDetail(
                product_id=line['product_id'],
                quantity=line['quantity'],
                purchase_price=line['purchase_price'],
                total_price=line['quantity'] * line['purchase_price'],
            ))
        session.add(entry)
        session.flush()  # Get entry.id

        for line in lines:
            stock_service.reserve_and_increment(session, line['product_id'], line['quantity'])

    logger.info(
        f"Inventory entry #{entry.id} committed: supplier {supplier.rut}, "
        f"{len(lines)} line(s)"
    )
    return entry


def list_entries(session) -> List[InventoryEntry]:
    return (session.query(InventoryEntry)
            .options(selectinload(InventoryEntry.supplier),
                     selectinload(InventoryEntry.details).selectinload(InventoryEntryDetail.product))
            .order_by(InventoryEntry.id.desc())
            .all())


def get_entry(session, entry_id: int, for_update: bool = False) -> InventoryEntry:
    """
    Get an entry with its details.

    With for_update the header row is locked, so a concurrent delete of the
    same entry waits and then finds nothing.
    """
    query = (session.query(InventoryEntry)
             .options(selectinload(InventoryEntry.details))
             .filter(InventoryEntry.id == entry_id))
    if for_update:
        query = query.with_for_update(of=InventoryEntry).populate_existing()
    entry = query.first()
    if not entry:
        raise EntryNotFoundError(entry_id)
    return entry


def delete_entry(session, entry_id: int) -> dict:
    """
    Delete an entry, first taking its quantities back out of stock.

    Raises:
        EntryNotFoundError: no such entry
        InconsistentReversalError: the stock it added has already left
    """
    with atomic_scope(session, 'entry.delete'):
        entry = get_entry(session, entry_id, for_update=True)
        stock_service.lock_stocks(session, [d.product_id for d in entry.details])

        reversed_products = []
        for detail in entry.details:
            product_stock = stock_service.reverse(
                session, detail.product_id, detail.quantity, stock_service.DIRECTION_ENTRY
            )
            reversed_products.append({
                'productId': detail.product_id,
                'quantity': detail.quantity,
                'newStock': product_stock.quantity,
            })

        # Details cascade with the header
        session.delete(entry)

    logger.info(f"Inventory entry #{entry_id} deleted, stock reversed for {len(reversed_products)} line(s)")
    return {
        'entryId': entry_id,
        'reversedProducts': reversed_products,
    }
