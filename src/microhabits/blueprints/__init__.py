"""Blueprint exports."""

from . import auth, habits

__all__ = ["auth", "habits"]
