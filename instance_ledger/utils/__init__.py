from .quantities import format_quantity, to_quantity
from .timezone_utils import TimezoneUtils

__all__ = ['TimezoneUtils', 'format_quantity', 'to_quantity']
