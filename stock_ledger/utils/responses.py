"""JSON response envelope shared by the API blueprints."""
from flask import jsonify, request

from stock_ledger.exceptions import ValidationError


def success(data=None, message='OK', status=200):
    return jsonify({'status': 'success', 'message': message, 'data': data}), status


def json_body() -> dict:
    """Request body as a dict, or ValidationError."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError('El cuerpo de la solicitud debe ser un objeto JSON válido.')
    return payload
