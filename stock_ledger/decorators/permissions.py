"""Role gates for the API routes."""

from functools import wraps
from flask import g

from stock_ledger.exceptions import UnauthorizedError, ForbiddenError

# Roles allowed to register or delete stock movements
LEDGER_WRITE_ROLES = ('Administrador', 'SuperAdministrador', 'Ventas', 'Gerencia')

# Roles allowed to read movements and stock levels
LEDGER_READ_ROLES = LEDGER_WRITE_ROLES + ('Finanzas',)

# Roles allowed to maintain the product catalog
CATALOG_WRITE_ROLES = ('Administrador', 'SuperAdministrador', 'Gerencia')


def require_role(*allowed_roles):
    """
    Allow the route only for callers whose token role is in allowed_roles.

    No valid token raises UnauthorizedError (401); a token with another role
    raises ForbiddenError (403).
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not g.get('user'):
                raise UnauthorizedError()

            user_role = g.get('user_role')
            if not user_role or user_role not in allowed_roles:
                raise ForbiddenError()

            return f(*args, **kwargs)

        return decorated_function
    return decorator
