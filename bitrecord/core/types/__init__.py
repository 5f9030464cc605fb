from .field_width import FieldWidth

__all__ = [
    'FieldWidth',
]
