"""Product catalog: product identity, canonical sale price, active flag."""
import logging
from typing import Dict, Iterable, List

from stock_ledger.exceptions import (
    ValidationError, ProductNotFoundError, DuplicateError
)
from stock_ledger.models import Product, ProductType, ProductStock
from stock_ledger.services.transaction_service import atomic_scope
from stock_ledger.services.validation import MAX_PRICE

logger = logging.getLogger(__name__)


def get_product(session, product_id: int) -> Product:
    """Get product by id or raise ProductNotFoundError."""
    product = session.get(Product, product_id)
    if not product:
        raise ProductNotFoundError(product_id)
    return product


def is_active(session, product_id: int) -> bool:
    return get_product(session, product_id).active


def get_products(session, product_ids: Iterable[int]) -> Dict[int, Product]:
    """
    Fetch products in batch.

    Raises:
        ProductNotFoundError: naming the first requested id that does not exist
    """
    ids = list(product_ids)
    products = session.query(Product).filter(Product.id.in_(set(ids))).all()
    products_dict = {p.id: p for p in products}

    for pid in ids:
        if pid not in products_dict:
            raise ProductNotFoundError(pid)

    return products_dict


def list_products(session) -> List[Product]:
    return session.query(Product).order_by(Product.id).all()


def _parse_product_type(value) -> ProductType:
    try:
        return ProductType(value)
    except ValueError:
        raise ValidationError(
            'El tipo de producto no es válido.',
            payload={'allowed': [t.value for t in ProductType]},
        )


def _parse_sale_price(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError('El precio de venta debe ser un número entero mayor a cero.')
    if value > MAX_PRICE:
        raise ValidationError(f'El precio de venta no puede superar {MAX_PRICE}.')
    return value


def create_product(session, payload: dict) -> Product:
    """
    Create a product together with its zero stock row.

    Args:
        payload: {product: ProductType value, salePrice: int}
    """
    product_type = _parse_product_type(payload.get('product'))
    sale_price = _parse_sale_price(payload.get('salePrice'))

    with atomic_scope(session, 'product.create'):
        existing = session.query(Product).filter(Product.product_type == product_type).first()
        if existing:
            raise DuplicateError('El producto ya existe.', payload={'product_id': existing.id})

        product = Product(product_type=product_type, sale_price=sale_price, active=True)
        session.add(product)
        session.flush()  # Get product.id

        session.add(ProductStock(product_id=product.id, quantity=0))

    logger.info(f"Product created: {product.id} ({product_type.value}) at {sale_price}")
    return product


def update_product(session, product_id: int, payload: dict) -> Product:
    """
    Update sale price and/or active flag.

    Historical movement details keep the price they were recorded with.
    """
    if not payload or not ({'salePrice', 'active'} & payload.keys()):
        raise ValidationError('Se requiere al menos una propiedad para actualizar: salePrice o active.')

    unknown = set(payload) - {'salePrice', 'active'}
    if unknown:
        raise ValidationError(f'No se permiten propiedades adicionales: {", ".join(sorted(unknown))}')

    sale_price = _parse_sale_price(payload['salePrice']) if 'salePrice' in payload else None
    if 'active' in payload and not isinstance(payload['active'], bool):
        raise ValidationError('El campo active debe ser booleano.')

    with atomic_scope(session, 'product.update'):
        product = get_product(session, product_id)
        if sale_price is not None:
            product.sale_price = sale_price
        if 'active' in payload:
            product.active = payload['active']

    return product


def deactivate_product(session, product_id: int) -> Product:
    """Retire a product from sale; it may still be restocked through entries."""
    with atomic_scope(session, 'product.deactivate'):
        product = get_product(session, product_id)
        product.active = False

    logger.info(f"Product deactivated: {product_id}")
    return product
