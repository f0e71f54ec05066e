"""
Stock ledger: the authoritative on-hand quantity per product.

Every mutation goes through a row locked FOR UPDATE, so the insufficiency
check and the write it guards are serialized per product. Callers that touch
several products lock them first with `lock_stocks` (ascending id order) to
keep concurrent movements from deadlocking.
"""
import logging
from typing import Dict, Iterable, List

from sqlalchemy import func

from stock_ledger.exceptions import InsufficientStockError, InconsistentReversalError
from stock_ledger.models import (
    Product, ProductStock, InventoryEntryDetail, InventoryExitDetail
)

logger = logging.getLogger(__name__)

DIRECTION_ENTRY = 'entry'
DIRECTION_EXIT = 'exit'


def lock_stocks(session, product_ids: Iterable[int]) -> Dict[int, ProductStock]:
    """Lock product_stock rows FOR UPDATE and return them keyed by product id."""
    ids = sorted(set(product_ids))
    if not ids:
        return {}

    rows = (session.query(ProductStock)
            .filter(ProductStock.product_id.in_(ids))
            .order_by(ProductStock.product_id)
            .with_for_update()
            .all())
    return {row.product_id: row for row in rows}


def _locked_stock(session, product_id: int, create: bool = False) -> ProductStock:
    product_stock = session.query(ProductStock).filter(
        ProductStock.product_id == product_id
    ).with_for_update().first()

    if product_stock is None and create:
        # Create stock record if it doesn't exist
        product_stock = ProductStock(product_id=product_id, quantity=0)
        session.add(product_stock)
        session.flush()

    return product_stock


def reserve_and_increment(session, product_id: int, qty: int) -> ProductStock:
    """Increase stock by qty (entries). No upper bound."""
    product_stock = _locked_stock(session, product_id, create=True)
    product_stock.quantity += qty
    return product_stock


def reserve_and_decrement(session, product_id: int, qty: int, product_name: str = None) -> ProductStock:
    """
    Decrease stock by qty (exits).

    Raises:
        InsufficientStockError: if the locked quantity is below qty
    """
    product_stock = _locked_stock(session, product_id)
    available = product_stock.quantity if product_stock else 0

    if available < qty:
        raise InsufficientStockError(product_id, product_name or f'producto {product_id}', qty, available)

    product_stock.quantity -= qty
    return product_stock


def reverse(session, product_id: int, qty: int, direction: str) -> ProductStock:
    """
    Undo the stock effect of one movement line.

    An entry line is reversed by decrementing, an exit line by incrementing.

    Raises:
        InconsistentReversalError: if undoing an entry would leave negative stock
        ValueError: for an unknown direction
    """
    if direction == DIRECTION_EXIT:
        return reserve_and_increment(session, product_id, qty)

    if direction != DIRECTION_ENTRY:
        raise ValueError(f'Dirección de reversa desconocida: {direction}')

    product_stock = _locked_stock(session, product_id)
    available = product_stock.quantity if product_stock else 0

    if available < qty:
        raise InconsistentReversalError(product_id, qty, available, direction)

    product_stock.quantity -= qty
    return product_stock


def get_stock_levels(session) -> List[dict]:
    """Current stock per product, ordered by product id."""
    rows = (session.query(Product, ProductStock.quantity, ProductStock.updated_at)
            .outerjoin(ProductStock, ProductStock.product_id == Product.id)
            .order_by(Product.id)
            .all())

    return [
        {
            'productId': product.id,
            'product': product.name,
            'salePrice': product.sale_price,
            'active': product.active,
            'quantity': quantity or 0,
            'updatedAt': updated_at.isoformat() if updated_at else None,
        }
        for product, quantity, updated_at in rows
    ]


def expected_stock_levels(session) -> Dict[int, int]:
    """Recompute stock from movement history: sum(entries) - sum(exits)."""
    entered = dict(
        session.query(InventoryEntryDetail.product_id, func.sum(InventoryEntryDetail.quantity))
        .group_by(InventoryEntryDetail.product_id)
        .all()
    )
    exited = dict(
        session.query(InventoryExitDetail.product_id, func.sum(InventoryExitDetail.quantity))
        .group_by(InventoryExitDetail.product_id)
        .all()
    )

    product_ids = [pid for (pid,) in session.query(Product.id).all()]
    return {
        pid: int(entered.get(pid) or 0) - int(exited.get(pid) or 0)
        for pid in product_ids
    }


def find_stock_discrepancies(session) -> List[dict]:
    """
    Compare the materialized quantity of every product with its history.

    Returns:
        list of {product_id, recorded, expected} for products that differ
    """
    recorded = dict(session.query(ProductStock.product_id, ProductStock.quantity).all())
    discrepancies = []

    for product_id, expected in expected_stock_levels(session).items():
        actual = recorded.get(product_id, 0)
        if actual != expected:
            discrepancies.append({
                'product_id': product_id,
                'recorded': actual,
                'expected': expected,
            })

    if discrepancies:
        logger.error(f"[LEDGER] Stock diverged from movement history for {len(discrepancies)} product(s)")

    return discrepancies
