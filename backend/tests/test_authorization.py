# Overview: Pytest coverage for the role/capability table and authorize().

from types import SimpleNamespace

import pytest

from smallbiz.models.auth import ROLE_OWNER, ROLE_STAFF
from smallbiz.permissions import (
    CAPABILITY_RULES,
    CapabilityDeniedError,
    authorize,
    can,
)

OWNER_ONLY = {
    "CREATE_PRODUCT", "UPDATE_PRODUCT", "DELETE_PRODUCT", "RESTORE_PRODUCT",
    "DELETE_CUSTOMER", "RESTORE_CUSTOMER",
    "DELETE_ORDER", "MARK_ORDER_PAID",
    "VIEW_REPORTS", "REGISTER_STAFF",
}
SHARED = {
    "VIEW_PRODUCTS", "VIEW_CUSTOMERS", "CREATE_CUSTOMER", "UPDATE_CUSTOMER",
    "VIEW_ORDERS", "CREATE_ORDER",
}


def _order(status, tenant_id=1):
    return SimpleNamespace(
        tenant_id=tenant_id,
        status=status,
        is_pending=status == "pending",
        is_cancellable=status != "cancelled",
    )


def test_table_lists_every_capability():
    assert set(CAPABILITY_RULES) == OWNER_ONLY | SHARED | {"UPDATE_ORDER", "CANCEL_ORDER"}


@pytest.mark.parametrize("capability", sorted(OWNER_ONLY))
def test_owner_only(capability):
    assert can(ROLE_OWNER, capability)
    assert not can(ROLE_STAFF, capability)


@pytest.mark.parametrize("capability", sorted(SHARED))
def test_shared(capability):
    assert can(ROLE_OWNER, capability)
    assert can(ROLE_STAFF, capability)


def test_unknown_capability_and_role_are_denied():
    assert not can(ROLE_OWNER, "LAUNCH_ROCKETS")
    assert not can("auditor", "VIEW_PRODUCTS")


def test_not_owning_the_resource_denies_everything():
    assert not can(ROLE_OWNER, "VIEW_PRODUCTS", owns_resource=False)


@pytest.mark.parametrize("status,owner,staff", [
    ("pending", True, True),
    ("paid", True, False),
    ("cancelled", True, False),
])
def test_update_order_depends_on_status(status, owner, staff):
    order = _order(status)
    assert can(ROLE_OWNER, "UPDATE_ORDER", resource=order) is owner
    assert can(ROLE_STAFF, "UPDATE_ORDER", resource=order) is staff


@pytest.mark.parametrize("status,allowed", [
    ("pending", True),
    ("paid", True),
    ("cancelled", False),
])
def test_cancel_order_depends_on_status(status, allowed):
    order = _order(status)
    assert can(ROLE_OWNER, "CANCEL_ORDER", resource=order) is allowed
    assert can(ROLE_STAFF, "CANCEL_ORDER", resource=order) is allowed


def test_authorize_checks_resource_tenant():
    user = SimpleNamespace(role=ROLE_OWNER, tenant_id=1)

    authorize(user, "UPDATE_ORDER", _order("pending", tenant_id=1))

    with pytest.raises(CapabilityDeniedError) as exc_info:
        authorize(user, "UPDATE_ORDER", _order("pending", tenant_id=2))
    assert exc_info.value.capability == "UPDATE_ORDER"
