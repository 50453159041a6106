# Domain Package
from .errors import InconsistentState, InvalidInput

__all__ = ["InvalidInput", "InconsistentState"]
