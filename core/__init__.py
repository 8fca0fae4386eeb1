"""Core domain models and builders for orgstate."""

from .models import AccountRecord, Environment, PermissionMode, PolicyDoc, PolicyStatement

__all__ = ["AccountRecord", "Environment", "PermissionMode", "PolicyDoc", "PolicyStatement"]
