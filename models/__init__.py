"""ORM models exposed by the DayGrid application."""
from .unresolved_duplicate import UnresolvedDuplicate

__all__ = ["UnresolvedDuplicate"]
