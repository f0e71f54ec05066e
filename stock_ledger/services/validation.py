"""Shape checks for movement request bodies."""
from stock_ledger.exceptions import ValidationError

# Bounds keep every value, and quantity * price, inside the database columns
MAX_QUANTITY = 1_000_000
MAX_PRICE = 1_000_000_000
MAX_ID = 2 ** 63 - 1


def require_details(details) -> list:
    """The detail list must be a non-empty list of objects."""
    if not isinstance(details, list):
        raise ValidationError('Los detalles deben ser un arreglo.')
    if not details:
        raise ValidationError('Debe haber al menos un producto en el movimiento.')
    for index, line in enumerate(details, start=1):
        if not isinstance(line, dict):
            raise ValidationError(f'El detalle {index} debe ser un objeto.')
    return details


def require_int(line: dict, field: str, index: int, minimum: int, maximum: int) -> int:
    """Read an integer field of a detail line, enforcing both bounds."""
    if field not in line:
        raise ValidationError(f'El campo {field} es obligatorio en el detalle {index}.')

    value = line[field]
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f'El campo {field} del detalle {index} debe ser un número entero.')
    if value < minimum:
        comparison = 'mayor a cero' if minimum == 1 else f'mayor o igual a {minimum}'
        raise ValidationError(f'El campo {field} del detalle {index} debe ser {comparison}.')
    if value > maximum:
        raise ValidationError(
            f'El campo {field} del detalle {index} no puede superar {maximum}.',
            payload={'field': field, 'maximum': maximum},
        )
    return value
