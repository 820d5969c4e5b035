# Overview: Capability checks against the role table.

from .rules import CAPABILITY_RULES


class CapabilityDeniedError(Exception):
    """Raised when a user lacks the capability for an operation."""

    def __init__(self, capability: str, message: str | None = None):
        super().__init__(message or f"This action is unauthorized ({capability}).")
        self.capability = capability


def can(role: str, capability: str, owns_resource: bool = True, resource=None) -> bool:
    """
    Decide whether `role` may perform `capability`.

    owns_resource must be True (the resource belongs to the user's tenant)
    for anything to be allowed. Unknown capabilities are denied.
    """
    if not owns_resource:
        return False

    rule = CAPABILITY_RULES.get(capability)
    if rule is None:
        return False
    if callable(rule):
        return bool(rule(role, resource))
    return role in rule


def authorize(user, capability: str, resource=None) -> None:
    """Raise CapabilityDeniedError unless `user` may act on `resource`."""
    owns = resource is None or getattr(resource, "tenant_id", None) == user.tenant_id
    if not can(user.role, capability, owns_resource=owns, resource=resource):
        raise CapabilityDeniedError(capability)
