"""
Inventory exit service with transactional logic.
Handles outbound movements to customers and their stock reversal.
"""
import logging
from typing import List

from sqlalchemy.orm import selectinload

from stock_ledger.exceptions import ValidationError, ExitNotFoundError, ProductInactiveError
from stock_ledger.models import InventoryExit, InventoryExitDetail
from stock_ledger.services import catalog_service, party_service, stock_service
from stock_ledger.services.transaction_service import atomic_scope
from stock_ledger.services.validation import require_details, require_int, MAX_ID, MAX_QUANTITY
from stock_ledger.utils.rut import normalize_rut

logger = logging.getLogger(__name__)


def _validate_lines(details) -> List[dict]:
    lines = []
    for index, line in enumerate(require_details(details), start=1):
        lines.append({
            'product_id': require_int(line, 'productId', index, minimum=1, maximum=MAX_ID),
            'quantity': require_int(line, 'quantity', index, minimum=1, maximum=MAX_QUANTITY),
        })
    return lines


def create_exit(session, customer_rut: str, details) -> InventoryExit:
    """
    Create an inventory exit and decrement stock, all or nothing.

    Each line snapshots the product's current sale price. Lines are
    decremented in request order; the first line without enough stock aborts
    the whole movement and no line is persisted.

    Args:
        session: SQLAlchemy session
        customer_rut: customer RUT, with or without periods
        details: list of {productId, quantity}

    Returns:
        The committed InventoryExit

    Raises:
        ValidationError / InvalidRutError: malformed input
        CounterpartyNotFoundError: unknown customer
        ProductNotFoundError: unknown product id
        ProductInactiveError: product no longer sold
        InsufficientStockError: first line whose quantity exceeds stock
    """
    if not isinstance(customer_rut, str) or not customer_rut.strip():
        raise ValidationError('El RUT del cliente es obligatorio.')
    lines = _validate_lines(details)
    normalize_rut(customer_rut)

    with atomic_scope(session, 'exit.create'):
        customer = party_service.find_customer_by_rut(session, customer_rut)

        # 1. Fetch products and validate in batch
        products_dict = catalog_service.get_products(session, [line['product_id'] for line in lines])
        for line in lines:
            product = products_dict[line['product_id']]
            if not product.active:
                raise ProductInactiveError(product.id, product.name)

        # 2. Lock stock levels
        stock_service.lock_stocks(session, products_dict.keys())

        # 3. Decrement in request order; the first shortfall aborts everything
        exit_ = InventoryExit(customer=customer)
        for line in lines:
            product = products_dict[line['product_id']]
            stock_service.reserve_and_decrement(session, product.id, line['quantity'], product.name)

            exit_.details.append(InventoryExitDetail(
                product_id=product.id,
                quantity=line['quantity'],
                sale_price=product.sale_price,
                total_price=line['quantity'] * product.sale_price,
            ))

        # 4. Create header and lines
        session.add(exit_)
        session.flush()  # Get exit_.id

    logger.info(
        f"Inventory exit #{exit_.id} committed: customer {customer.rut}, "
        f"{len(lines)} line(s)"
    )
    return exit_


def list_exits(session) -> List[InventoryExit]:
    return (session.query(InventoryExit)
            .options(selectinload(InventoryExit.customer),
                     selectinload(InventoryExit.details).selectinload(InventoryExitDetail.product))
            .order_by(InventoryExit.id.desc())
            .all())


def get_exit(session, exit_id: int, for_update: bool = False) -> InventoryExit:
    query = (session.query(InventoryExit)
             .options(selectinload(InventoryExit.details))
             .filter(InventoryExit.id == exit_id))
    if for_update:
        # Header first, then stock rows: same order as delete_entry
        query = query.with_for_update(of=InventoryExit).populate_existing()
    exit_ = query.first()
    if not exit_:
        raise ExitNotFoundError(exit_id)
    return exit_


def delete_exit(session, exit_id: int) -> dict:
    """
    Delete an exit and put its quantities back into stock.

    Raises:
        ExitNotFoundError: no such exit
    """
    with atomic_scope(session, 'exit.delete'):
        exit_ = get_exit(session, exit_id, for_update=True)
        stock_service.lock_stocks(session, [d.product_id for d in exit_.details])

        reversed_products = []
        for detail in exit_.details:
            product_stock = stock_service.reverse(
                session, detail.product_id, detail.quantity, stock_service.DIRECTION_EXIT
            )
            reversed_products.append({
                'productId': detail.product_id,
                'quantity': detail.quantity,
                'newStock': product_stock.quantity,
            })

        session.delete(exit_)

    logger.info(f"Inventory exit #{exit_id} deleted, stock restored for {len(reversed_products)} line(s)")
    return {
        'exitId': exit_id,
        'reversedProducts': reversed_products,
    }
