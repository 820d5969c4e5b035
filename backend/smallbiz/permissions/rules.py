# Overview: Which role holds which capability.
# Entries are either a set of roles or a predicate(role, resource) -> bool.
# There is no role hierarchy: every operation is listed explicitly.

from ..models.auth import ROLE_OWNER, ROLE_STAFF

ANY_ROLE = frozenset({ROLE_OWNER, ROLE_STAFF})
OWNER_ONLY = frozenset({ROLE_OWNER})


def _update_order(role, order) -> bool:
    if role == ROLE_OWNER:
        return True
    return role == ROLE_STAFF and order is not None and order.is_pending


def _cancel_order(role, order) -> bool:
    return role in ANY_ROLE and (order is None or order.is_cancellable)


CAPABILITY_RULES = {
    # products
    "VIEW_PRODUCTS": ANY_ROLE,
    "CREATE_PRODUCT": OWNER_ONLY,
    "UPDATE_PRODUCT": OWNER_ONLY,
    "DELETE_PRODUCT": OWNER_ONLY,
    "RESTORE_PRODUCT": OWNER_ONLY,
    # customers
    "VIEW_CUSTOMERS": ANY_ROLE,
    "CREATE_CUSTOMER": ANY_ROLE,
    "UPDATE_CUSTOMER": ANY_ROLE,
    "DELETE_CUSTOMER": OWNER_ONLY,
    "RESTORE_CUSTOMER": OWNER_ONLY,
    # orders
    "VIEW_ORDERS": ANY_ROLE,
    "CREATE_ORDER": ANY_ROLE,
    "UPDATE_ORDER": _update_order,
    "DELETE_ORDER": OWNER_ONLY,
    "CANCEL_ORDER": _cancel_order,
    "MARK_ORDER_PAID": OWNER_ONLY,
    # reports / users
    "VIEW_REPORTS": OWNER_ONLY,
    "REGISTER_STAFF": OWNER_ONLY,
}
