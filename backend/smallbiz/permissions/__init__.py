# Overview: Capability system package.
# Re-exports the public API.

from .rules import CAPABILITY_RULES
from .helpers import CapabilityDeniedError, authorize, can

__all__ = [
    "CAPABILITY_RULES",
    "CapabilityDeniedError",
    "authorize",
    "can",
]
