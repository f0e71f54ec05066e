"""Products blueprint: catalog maintenance."""
from flask import Blueprint

from stock_ledger.database import get_session
from stock_ledger.decorators.permissions import require_role, LEDGER_READ_ROLES, CATALOG_WRITE_ROLES
from stock_ledger.services import catalog_service
from stock_ledger.utils.responses import success, json_body

products_bp = Blueprint('products', __name__, url_prefix='/products')


@products_bp.route('', methods=['GET'])
@require_role(*LEDGER_READ_ROLES)
def list_products():
    session = get_session()
    return success([p.to_dict() for p in catalog_service.list_products(session)], 'Productos')


@products_bp.route('/<int:product_id>', methods=['GET'])
@require_role(*LEDGER_READ_ROLES)
def get_product(product_id):
    session = get_session()
    product = catalog_service.get_product(session, product_id)
    return success(product.to_dict(), 'Producto')


@products_bp.route('', methods=['POST'])
@require_role(*CATALOG_WRITE_ROLES)
def create_product():
    """Body: {product, salePrice}"""
    session = get_session()
    product = catalog_service.create_product(session, json_body())
    return success(product.to_dict(), 'Producto creado', 201)


@products_bp.route('/<int:product_id>', methods=['PATCH'])
@require_role(*CATALOG_WRITE_ROLES)
def update_product(product_id):
    """Body: {salePrice?, active?}"""
    session = get_session()
    product = catalog_service.update_product(session, product_id, json_body())
    return success(product.to_dict(), 'Producto actualizado')


@products_bp.route('/<int:product_id>', methods=['DELETE'])
@require_role(*CATALOG_WRITE_ROLES)
def delete_product(product_id):
    # Movements keep referencing the product, so it is only deactivated
    session = get_session()
    product = catalog_service.deactivate_product(session, product_id)
    return success(product.to_dict(), 'Producto desactivado')
