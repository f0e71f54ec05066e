"""Party directory: customers and suppliers identified by RUT."""
import logging
import re
from typing import List, Type

from stock_ledger.exceptions import (
    ValidationError, NotFoundError, CounterpartyNotFoundError, DuplicateError
)
from stock_ledger.models import Customer, Supplier
from stock_ledger.services.transaction_service import atomic_scope
from stock_ledger.utils.rut import normalize_rut

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')

PARTY_FIELDS = ('name', 'rut', 'address', 'phone', 'email')

_LABELS = {
    Customer: 'Cliente',
    Supplier: 'Proveedor',
}


def find_by_rut(session, model: Type, rut: str):
    """
    Resolve a counterparty by RUT.

    The RUT is validated before the lookup, so a malformed value raises
    InvalidRutError without touching the database.

    Raises:
        InvalidRutError: malformed RUT or wrong check digit
        CounterpartyNotFoundError: no record with that RUT
    """
    formatted = normalize_rut(rut)
    party = session.query(model).filter(model.rut == formatted).first()
    if not party:
        raise CounterpartyNotFoundError(_LABELS[model], formatted)
    return party


def find_supplier_by_rut(session, rut: str) -> Supplier:
    return find_by_rut(session, Supplier, rut)


def find_customer_by_rut(session, rut: str) -> Customer:
    return find_by_rut(session, Customer, rut)


def list_parties(session, model: Type) -> List:
    """List active parties ordered by name."""
    return (session.query(model)
            .filter(model.is_active.is_(True))
            .order_by(model.name)
            .all())


def get_party(session, model: Type, party_id: int):
    party = session.get(model, party_id)
    if not party:
        raise NotFoundError(f'{_LABELS[model]} #{party_id} no existe.')
    return party


def _clean_payload(payload: dict, partial: bool = False) -> dict:
    """Validate party fields; returns only the recognized, cleaned values."""
    if not isinstance(payload, dict):
        raise ValidationError('El cuerpo de la solicitud debe ser un objeto válido.')

    unknown = set(payload) - set(PARTY_FIELDS)
    if unknown:
        raise ValidationError(f'No se permiten propiedades adicionales: {", ".join(sorted(unknown))}')

    data = {}
    for field in PARTY_FIELDS:
        if field not in payload:
            if not partial:
                raise ValidationError(f'El campo {field} es requerido.')
            continue

        value = payload[field]
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(f'El campo {field} no puede estar vacío.')
        data[field] = value.strip()

    if partial and not data:
        raise ValidationError('Se requiere al menos una propiedad para actualizar.')

    if 'rut' in data:
        data['rut'] = normalize_rut(data['rut'])
    if 'email' in data:
        if not EMAIL_PATTERN.match(data['email']):
            raise ValidationError('El email ingresado no es válido.')
        data['email'] = data['email'].lower()
    if 'name' in data and not 3 <= len(data['name']) <= 70:
        raise ValidationError('El nombre debe tener entre 3 y 70 caracteres.')
    if 'phone' in data and len(data['phone']) > 12:
        raise ValidationError('El teléfono debe tener como máximo 12 caracteres.')

    return data


def _ensure_unique_email(session, model: Type, email: str, exclude_id: int = None):
    query = session.query(model).filter(model.email == email)
    if exclude_id is not None:
        query = query.filter(model.id != exclude_id)
    if query.first():
        raise DuplicateError(f'El email {email} ya está registrado.', payload={'email': email})


def create_party(session, model: Type, payload: dict):
    """
    Create a customer or supplier.

    A RUT that belongs to an inactive record reactivates it with the new data;
    an active duplicate is rejected.
    """
    data = _clean_payload(payload)
    label = _LABELS[model]

    with atomic_scope(session, f'{model.__tablename__}.create'):
        existing = session.query(model).filter(model.rut == data['rut']).first()

        if existing and existing.is_active:
            raise DuplicateError(f'El {label.lower()} ya existe y está activo.', payload={'rut': data['rut']})

        _ensure_unique_email(session, model, data['email'], exclude_id=existing.id if existing else None)

        if existing:
            for field, value in data.items():
                setattr(existing, field, value)
            existing.is_active = True
            party = existing
            logger.info(f"{label} reactivated: {data['rut']}")
        else:
            party = model(**data, is_active=True)
            session.add(party)
            logger.info(f"{label} created: {data['rut']}")

    return party


def update_party(session, model: Type, party_id: int, payload: dict):
    data = _clean_payload(payload, partial=True)
    label = _LABELS[model]

    with atomic_scope(session, f'{model.__tablename__}.update'):
        party = get_party(session, model, party_id)

        if 'rut' in data and data['rut'] != party.rut:
            if session.query(model).filter(model.rut == data['rut']).first():
                raise DuplicateError(f'Ya existe un {label.lower()} con RUT {data["rut"]}.', payload={'rut': data['rut']})
        if 'email' in data:
            _ensure_unique_email(session, model, data['email'], exclude_id=party.id)

        for field, value in data.items():
            setattr(party, field, value)

    return party


def deactivate_party(session, model: Type, party_id: int):
    """Soft delete: movements keep referencing the record."""
    with atomic_scope(session, f'{model.__tablename__}.deactivate'):
        party = get_party(session, model, party_id)
        party.is_active = False

    logger.info(f"{_LABELS[model]} deactivated: {party_id}")
    return party
