"""Custom exceptions for the stock ledger application."""


class LedgerError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv


class ValidationError(LedgerError):
    """Malformed input, rejected before any lookup."""
    def __init__(self, message, payload=None):
        super().__init__(message, 400, payload)


class InvalidRutError(ValidationError):
    """Raised when a RUT fails the format or check-digit test."""
    def __init__(self, rut):
        super().__init__(f'El RUT "{rut}" no es válido', payload={'rut': rut})


class BusinessLogicError(LedgerError):
    """Exception raised for business logic violations."""
    def __init__(self, message, status_code=409, payload=None):
        super().__init__(message, status_code, payload)


class NotFoundError(LedgerError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)


class ProductNotFoundError(NotFoundError):
    def __init__(self, product_id):
        super().__init__(f'Producto con ID {product_id} no encontrado', {'product_id': product_id})


class CounterpartyNotFoundError(NotFoundError):
    def __init__(self, kind, rut):
        super().__init__(f'{kind} con RUT {rut} no encontrado', {'rut': rut})


class EntryNotFoundError(NotFoundError):
    def __init__(self, entry_id):
        super().__init__(f'Entrada de inventario #{entry_id} no encontrada', {'entry_id': entry_id})


class ExitNotFoundError(NotFoundError):
    def __init__(self, exit_id):
        super().__init__(f'Salida de inventario #{exit_id} no encontrada', {'exit_id': exit_id})


class ProductInactiveError(BusinessLogicError):
    """Raised when an exit references a product that is no longer sold."""
    def __init__(self, product_id, product_name):
        super().__init__(
            f'El producto "{product_name}" no está activo',
            payload={'product_id': product_id},
        )


class InsufficientStockError(BusinessLogicError):
    """Raised when an operation fails due to lack of stock."""
    def __init__(self, product_id, product_name, required, available):
        message = (
            f"Stock insuficiente para {product_name}: "
            f"se requieren {required}, disponible {available}"
        )
        super().__init__(message, payload={
            'product_id': product_id,
            'requested': required,
            'available': available,
        })
        self.product_id = product_id
        self.required = required
        self.available = available


class InconsistentReversalError(BusinessLogicError):
    """
    Raised when reversing a movement would drive stock below zero.

    The stock ledger and the movement history have already diverged, so the
    reversal is refused instead of clamped.
    """
    def __init__(self, product_id, quantity, available, direction):
        message = (
            f"No se puede revertir la {direction} del producto {product_id}: "
            f"se requieren {quantity}, disponible {available}"
        )
        super().__init__(message, payload={
            'product_id': product_id,
            'requested': quantity,
            'available': available,
            'direction': direction,
        })


class DuplicateError(BusinessLogicError):
    """Raised when a unique business identifier is already taken."""


class UnauthorizedError(LedgerError):
    """Raised when the request carries no valid bearer token."""
    def __init__(self, message="Token de autenticación inválido o ausente"):
        super().__init__(message, 401)


class ForbiddenError(LedgerError):
    """Raised when a user lacks permission for an action."""
    def __init__(self, message="No tienes permisos para acceder a esta ruta."):
        super().__init__(message, 403)
