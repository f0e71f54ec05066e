"""Middleware for bearer-token authentication."""
import jwt
from flask import g, request, current_app


def load_current_user():
    """
    Load the token claims of the caller into g.

    Called before each request. Sets g.user ({'sub', 'role', ...}) and
    g.user_role when a valid bearer token is present; leaves both None
    otherwise so that `require_role` rejects the request with 401.
    """
    g.user = None
    g.user_role = None

    header = request.headers.get('Authorization', '')
    scheme, _, token = header.partition(' ')
    if scheme.lower() != 'bearer' or not token:
        return

    try:
        claims = jwt.decode(
            token.strip(),
            current_app.config['SECRET_KEY'],
            algorithms=[current_app.config.get('JWT_ALGORITHM', 'HS256')],
        )
    except jwt.ExpiredSignatureError:
        current_app.logger.info("Rejected expired bearer token")
        return
    except jwt.InvalidTokenError as e:
        current_app.logger.warning(f"Rejected invalid bearer token: {e}")
        return

    if not claims.get('sub') or not claims.get('role'):
        current_app.logger.warning("Rejected bearer token without sub/role claims")
        return

    g.user = claims
    g.user_role = claims['role']

