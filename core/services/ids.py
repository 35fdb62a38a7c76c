from core.exceptions import ValidationError


def parse_id(value, label: str = 'appointment') -> int:
    """Parse a primary key taken from a path or body; ``label`` names it in the error."""
    try:
        pk = int(str(value))
    except (TypeError, ValueError):
        raise ValidationError(f'Invalid {label} ID format')
    if pk < 1:
        raise ValidationError(f'Invalid {label} ID format')
    return pk
