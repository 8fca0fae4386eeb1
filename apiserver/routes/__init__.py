"""API routes."""

from .plan import handle as plan
from .validate import handle as validate

__all__ = ["plan", "validate"]
