"""Inventory entries blueprint: goods received from suppliers."""
from flask import Blueprint, current_app, g

from stock_ledger.database import get_session
from stock_ledger.decorators.permissions import require_role, LEDGER_READ_ROLES, LEDGER_WRITE_ROLES
from stock_ledger.services import entry_service
from stock_ledger.utils.responses import success, json_body

entries_bp = Blueprint('entries', __name__, url_prefix='/inventory/entries')


@entries_bp.route('', methods=['POST'])
@require_role(*LEDGER_WRITE_ROLES)
def create_entry():
    """
    Register an entry.

    Body: {supplierRut, details: [{productId, quantity, purchasePrice}]}
    """
    payload = json_body()
    session = get_session()

    entry = entry_service.create_entry(session, payload.get('supplierRut'), payload.get('details'))
    current_app.logger.info(f"Entry #{entry.id} registered by {g.user['sub']}")

    return success(entry.to_dict(), 'Entrada de inventario registrada', 201)


@entries_bp.route('', methods=['GET'])
@require_role(*LEDGER_READ_ROLES)
def list_entries():
    session = get_session()
    entries = entry_service.list_entries(session)
    return success([entry.to_dict() for entry in entries], 'Entradas de inventario')


@entries_bp.route('/<int:entry_id>', methods=['GET'])
@require_role(*LEDGER_READ_ROLES)
def get_entry(entry_id):
    session = get_session()
    entry = entry_service.get_entry(session, entry_id)
    return success(entry.to_dict(), f'Entrada de inventario #{entry_id}')


@entries_bp.route('/<int:entry_id>', methods=['DELETE'])
@require_role(*LEDGER_WRITE_ROLES)
def delete_entry(entry_id):
    """Delete an entry and take its quantities back out of stock."""
    session = get_session()
    result = entry_service.delete_entry(session, entry_id)
    current_app.logger.info(f"Entry #{entry_id} deleted by {g.user['sub']}")
    return success(result, f'Entrada de inventario #{entry_id} eliminada')
