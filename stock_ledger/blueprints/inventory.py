"""Inventory blueprint: current stock per product."""
from flask import Blueprint

from stock_ledger.database import get_session
from stock_ledger.decorators.permissions import require_role, LEDGER_READ_ROLES
from stock_ledger.services import stock_service
from stock_ledger.services.cache_service import get_cache
from stock_ledger.utils.responses import success

inventory_bp = Blueprint('inventory', __name__, url_prefix='/inventory')


@inventory_bp.route('', methods=['GET'])
@require_role(*LEDGER_READ_ROLES)
def list_stock():
    """List stock levels (cached until the next committed movement)."""
    session = get_session()
    levels = get_cache().memoize('stock', 'levels', lambda: stock_service.get_stock_levels(session))
    return success(levels, 'Stock de productos')
