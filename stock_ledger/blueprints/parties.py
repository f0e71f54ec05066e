"""
Customers and suppliers blueprints.

Both directories share the same routes; only the model and the wording
change. DELETE is a soft delete, since movements keep referencing the party.
"""
from flask import Blueprint

from stock_ledger.database import get_session
from stock_ledger.decorators.permissions import require_role, LEDGER_READ_ROLES, LEDGER_WRITE_ROLES
from stock_ledger.models import Customer, Supplier
from stock_ledger.services import party_service
from stock_ledger.utils.responses import success, json_body


def make_party_blueprint(name: str, model, label: str, plural: str) -> Blueprint:
    bp = Blueprint(name, __name__, url_prefix=f'/{name}')

    @bp.route('', methods=['GET'])
    @require_role(*LEDGER_READ_ROLES)
    def list_parties():
        session = get_session()
        parties = party_service.list_parties(session, model)
        return success([party.to_dict() for party in parties], plural)

    @bp.route('/<int:party_id>', methods=['GET'])
    @require_role(*LEDGER_READ_ROLES)
    def get_party(party_id):
        session = get_session()
        return success(party_service.get_party(session, model, party_id).to_dict(), label)

    @bp.route('', methods=['POST'])
    @require_role(*LEDGER_WRITE_ROLES)
    def create_party():
        """Body: {name, rut, address, phone, email}"""
        session = get_session()
        party = party_service.create_party(session, model, json_body())
        return success(party.to_dict(), f'{label} registrado', 201)

    @bp.route('/<int:party_id>', methods=['PATCH'])
    @require_role(*LEDGER_WRITE_ROLES)
    def update_party(party_id):
        session = get_session()
        party = party_service.update_party(session, model, party_id, json_body())
        return success(party.to_dict(), f'{label} actualizado')

    @bp.route('/<int:party_id>', methods=['DELETE'])
    @require_role(*LEDGER_WRITE_ROLES)
    def delete_party(party_id):
        session = get_session()
        party = party_service.deactivate_party(session, model, party_id)
        return success(party.to_dict(), f'{label} eliminado')

    return bp


customers_bp = make_party_blueprint('customers', Customer, 'Cliente', 'Clientes')
suppliers_bp = make_party_blueprint('suppliers', Supplier, 'Proveedor', 'Proveedores')
