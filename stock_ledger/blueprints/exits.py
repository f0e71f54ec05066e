"""Inventory exits blueprint: goods dispatched to customers."""
from flask import Blueprint, current_app, g

from stock_ledger.database import get_session
from stock_ledger.decorators.permissions import require_role, LEDGER_READ_ROLES, LEDGER_WRITE_ROLES
from stock_ledger.services import exit_service
from stock_ledger.utils.responses import success, json_body

exits_bp = Blueprint('exits', __name__, url_prefix='/inventory/exits')


@exits_bp.route('', methods=['POST'])
@require_role(*LEDGER_WRITE_ROLES)
def create_exit():
    """
    Register an exit at current sale prices.

    Body: {customerRut, details: [{productId, quantity}]}
    """
    payload = json_body()
    session = get_session()

    exit_ = exit_service.create_exit(session, payload.get('customerRut'), payload.get('details'))
    current_app.logger.info(f"Exit #{exit_.id} registered by {g.user['sub']}")

    return success(exit_.to_dict(), 'Salida de inventario registrada', 201)


@exits_bp.route('', methods=['GET'])
@require_role(*LEDGER_READ_ROLES)
def list_exits():
    session = get_session()
    exits = exit_service.list_exits(session)
    return success([exit_.to_dict() for exit_ in exits], 'Salidas de inventario')


@exits_bp.route('/<int:exit_id>', methods=['GET'])
@require_role(*LEDGER_READ_ROLES)
def get_exit(exit_id):
    session = get_session()
    exit_ = exit_service.get_exit(session, exit_id)
    return success(exit_.to_dict(), f'Salida de inventario #{exit_id}')


@exits_bp.route('/<int:exit_id>', methods=['DELETE'])
@require_role(*LEDGER_WRITE_ROLES)
def delete_exit(exit_id):
    """Delete an exit and return its quantities to stock."""
    session = get_session()
    result = exit_service.delete_exit(session, exit_id)
    current_app.logger.info(f"Exit #{exit_id} deleted by {g.user['sub']}")
    return success(result, f'Salida de inventario #{exit_id} eliminada')
