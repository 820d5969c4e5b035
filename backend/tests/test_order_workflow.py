# Overview: Pytest coverage for order placement, cancellation, payment and deletion.

import pytest

from smallbiz.extensions import db
from smallbiz.models import Order, OrderItem, Product
from smallbiz.models.orders import ORDER_STATUS_CANCELLED, ORDER_STATUS_PAID, ORDER_STATUS_PENDING
from smallbiz.services import order_service
from smallbiz.services.order_service import OrderError
from smallbiz.services.tenant_service import TenantAccessError
from smallbiz.validation import ConflictError, ValidationError


@pytest.fixture
def catalog(db_session, tenant_a):
    """P1 $50.00 x100, P2 $25.00 x50."""
    p1 = Product(tenant_id=tenant_a.id, sku="P1", name="Product One", price_cents=5000, stock_quantity=100)
    p2 = Product(tenant_id=tenant_a.id, sku="P2", name="Product Two", price_cents=2500, stock_quantity=50)
    db_session.add_all([p1, p2])
    db_session.commit()
    return p1, p2


def _stock(product_id):
    return db.session.get(Product, product_id).stock_quantity


class TestCreateOrder:

    def test_totals_and_stock_follow_lines(self, db_session, tenant_a, catalog):
        p1, p2 = catalog

        order = order_service.create_order(tenant_a.id, [
            {"product_id": p1.id, "quantity": 2},
            {"product_id": p2.id, "quantity": 3},
        ])

        assert order.status == ORDER_STATUS_PENDING
        assert order.total_amount_cents == 17500
        assert order.total_amount_cents == sum(i.unit_price_cents * i.quantity for i in order.items)
        assert [i.total_price_cents for i in order.items] == [10000, 7500]
        assert _stock(p1.id) == 98
        assert _stock(p2.id) == 47

    def test_order_number_format(self, db_session, tenant_a, catalog):
        p1, _ = catalog
        order = order_service.create_order(tenant_a.id, [{"product_id": p1.id, "quantity": 1}])

        assert order.order_number.startswith("ORD-")
        suffix = order.order_number[len("ORD-"):]
        assert len(suffix) == 16
        assert suffix == suffix.upper()
        int(suffix, 16)

    def test_price_is_snapshotted(self, db_session, tenant_a, catalog):
        p1, _ = catalog
        order = order_service.create_order(tenant_a.id, [{"product_id": p1.id, "quantity": 1}])

        p1.price_cents = 9999
        db_session.commit()

        item = db_session.query(OrderItem).filter_by(order_id=order.id).one()
        assert item.unit_price_cents == 5000

    def test_insufficient_stock_rejected_before_any_mutation(self, db_session, tenant_a):
        p = Product(tenant_id=tenant_a.id, sku="LOW", name="Scarce", price_cents=100, stock_quantity=5)
        db_session.add(p)
        db_session.commit()

        with pytest.raises(ValidationError) as exc_info:
            order_service.create_order(tenant_a.id, [{"product_id": p.id, "quantity": 10}])

        assert "items.0.quantity" in exc_info.value.errors
        assert _stock(p.id) == 5
        assert db_session.query(Order).count() == 0

    def test_one_bad_line_blocks_every_line(self, db_session, tenant_a, catalog):
        p1, p2 = catalog

        with pytest.raises(ValidationError) as exc_info:
            order_service.create_order(tenant_a.id, [
                {"product_id": p1.id, "quantity": 2},
                {"product_id": p2.id, "quantity": 51},
            ])

        assert "items.1.quantity" in exc_info.value.errors
        assert _stock(p1.id) == 100
        assert _stock(p2.id) == 50

    def test_repeated_product_lines_are_checked_cumulatively(self, db_session, tenant_a, catalog):
        _, p2 = catalog

        with pytest.raises(ValidationError) as exc_info:
            order_service.create_order(tenant_a.id, [
                {"product_id": p2.id, "quantity": 30},
                {"product_id": p2.id, "quantity": 30},
            ])

        assert "items.1.quantity" in exc_info.value.errors
        assert _stock(p2.id) == 50

    def test_failure_inside_transaction_rolls_back_earlier_decrements(
        self, db_session, tenant_a, catalog, monkeypatch
    ):
        """Stock lost to a concurrent writer after validation still aborts the whole order."""
        p1, p2 = catalog
        real_decrement = order_service.stock_service.decrement

        def losing_race(product, quantity):
            if product.id == p2.id:
                return False
            return real_decrement(product, quantity)

        monkeypatch.setattr(order_service.stock_service, "decrement", losing_race)

        with pytest.raises(ValidationError) as exc_info:
            order_service.create_order(tenant_a.id, [
                {"product_id": p1.id, "quantity": 2},
                {"product_id": p2.id, "quantity": 3},
            ])

        assert "items.1.quantity" in exc_info.value.errors
        assert _stock(p1.id) == 100
        assert db_session.query(Order).count() == 0
        assert db_session.query(OrderItem).count() == 0

    def test_inactive_and_deleted_products_are_rejected(self, db_session, tenant_a, catalog):
        p1, p2 = catalog
        p1.is_active = False
        p2.deleted_at = p2.created_at
        db_session.commit()

        with pytest.raises(ValidationError) as exc_info:
            order_service.create_order(tenant_a.id, [
                {"product_id": p1.id, "quantity": 1},
                {"product_id": p2.id, "quantity": 1},
            ])

        assert "items.0.product_id" in exc_info.value.errors
        assert "items.1.product_id" in exc_info.value.errors

    def test_item_shape_errors(self, db_session, tenant_a, catalog):
        p1, _ = catalog

        with pytest.raises(ValidationError) as exc_info:
            order_service.create_order(tenant_a.id, [
                {"product_id": p1.id, "quantity": 0},
                {"quantity": 1},
                "nonsense",
            ])

        errors = exc_info.value.errors
        assert "items.0.quantity" in errors
        assert "items.1.product_id" in errors
        assert "items.2" in errors

    def test_empty_items(self, db_session, tenant_a):
        with pytest.raises(ValidationError) as exc_info:
            order_service.create_order(tenant_a.id, [])
        assert "items" in exc_info.value.errors

    def test_foreign_product_and_customer_are_rejected(
        self, db_session, tenant_a, product_b, customer_b
    ):
        with pytest.raises(ValidationError) as exc_info:
            order_service.create_order(
                tenant_a.id,
                [{"product_id": product_b.id, "quantity": 1}],
                customer_id=customer_b.id,
            )

        assert "items.0.product_id" in exc_info.value.errors
        assert "customer_id" in exc_info.value.errors
        assert _stock(product_b.id) == 10


class TestCancelOrder:

    def test_cancel_restores_stock(self, db_session, tenant_a, catalog):
        p1, p2 = catalog
        order = order_service.create_order(tenant_a.id, [
            {"product_id": p1.id, "quantity": 2},
            {"product_id": p2.id, "quantity": 3},
        ])

        cancelled = order_service.cancel_order(tenant_a.id, order.id)

        assert cancelled.status == ORDER_STATUS_CANCELLED
        assert _stock(p1.id) == 100
        assert _stock(p2.id) == 50

    def test_cancel_is_idempotent(self, db_session, tenant_a, catalog):
        p1, _ = catalog
        order = order_service.create_order(tenant_a.id, [{"product_id": p1.id, "quantity": 4}])

        order_service.cancel_order(tenant_a.id, order.id)
        order_service.cancel_order(tenant_a.id, order.id)

        assert _stock(p1.id) == 100

    def test_cancel_paid_order_restores_stock(self, db_session, tenant_a, catalog):
        p1, _ = catalog
        order = order_service.create_order(tenant_a.id, [{"product_id": p1.id, "quantity": 4}])
        order_service.mark_order_paid(tenant_a.id, order.id)

        order_service.cancel_order(tenant_a.id, order.id)

        assert _stock(p1.id) == 100

    def test_cancel_foreign_order(self, db_session, tenant_a, tenant_b, catalog):
        p1, _ = catalog
        order = order_service.create_order(tenant_a.id, [{"product_id": p1.id, "quantity": 1}])

        with pytest.raises(TenantAccessError):
            order_service.cancel_order(tenant_b.id, order.id)
        assert _stock(p1.id) == 99


class TestMarkPaid:

    def test_pending_to_paid(self, db_session, tenant_a, catalog):
        p1, _ = catalog
        order = order_service.create_order(tenant_a.id, [{"product_id": p1.id, "quantity": 1}])

        paid = order_service.mark_order_paid(tenant_a.id, order.id)

        assert paid.status == ORDER_STATUS_PAID
        assert _stock(p1.id) == 99

    def test_paid_again_is_a_no_op(self, db_session, tenant_a, catalog):
        p1, _ = catalog
        order = order_service.create_order(tenant_a.id, [{"product_id": p1.id, "quantity": 1}])
        order_service.mark_order_paid(tenant_a.id, order.id)

        assert order_service.mark_order_paid(tenant_a.id, order.id).status == ORDER_STATUS_PAID

    def test_cancelled_cannot_be_paid(self, db_session, tenant_a, catalog):
        p1, _ = catalog
        order = order_service.create_order(tenant_a.id, [{"product_id": p1.id, "quantity": 1}])
        order_service.cancel_order(tenant_a.id, order.id)

        with pytest.raises(OrderError):
            order_service.mark_order_paid(tenant_a.id, order.id)


class TestUpdateOrder:

    def test_notes_update_on_pending(self, db_session, tenant_a, catalog):
        p1, _ = catalog
        order = order_service.create_order(tenant_a.id, [{"product_id": p1.id, "quantity": 1}])

        updated = order_service.update_order(tenant_a.id, order.id, {"notes": "Gift wrap"})

        assert updated.notes == "Gift wrap"

    def test_items_cannot_change(self, db_session, tenant_a, catalog):
        p1, _ = catalog
        order = order_service.create_order(tenant_a.id, [{"product_id": p1.id, "quantity": 1}])

        with pytest.raises(ValidationError) as exc_info:
            order_service.update_order(tenant_a.id, order.id, {"items": [{"product_id": p1.id, "quantity": 5}]})

        assert "items" in exc_info.value.errors
        assert _stock(p1.id) == 99

    def test_non_pending_customer_change_is_a_field_error(self, db_session, tenant_a, catalog, customer_a):
        p1, _ = catalog
        order = order_service.create_order(tenant_a.id, [{"product_id": p1.id, "quantity": 1}])
        order_service.mark_order_paid(tenant_a.id, order.id)

        with pytest.raises(ValidationError) as exc_info:
            order_service.update_order(tenant_a.id, order.id, {"customer_id": customer_a.id})

        assert "customer_id" in exc_info.value.errors

    def test_non_pending_notes_update_conflicts(self, db_session, tenant_a, catalog):
        p1, _ = catalog
        order = order_service.create_order(tenant_a.id, [{"product_id": p1.id, "quantity": 1}])
        order_service.mark_order_paid(tenant_a.id, order.id)

        with pytest.raises(ConflictError):
            order_service.update_order(tenant_a.id, order.id, {"notes": "late"})


class TestDeleteOrder:

    def test_delete_pending_restores_stock(self, db_session, tenant_a, catalog):
        p1, p2 = catalog
        order = order_service.create_order(tenant_a.id, [
            {"product_id": p1.id, "quantity": 2},
            {"product_id": p2.id, "quantity": 3},
        ])

        order_service.delete_order(tenant_a.id, order.id)

        assert _stock(p1.id) == 100
        assert _stock(p2.id) == 50
        assert db_session.query(Order).count() == 0
        assert db_session.query(OrderItem).count() == 0

    @pytest.mark.parametrize("transition", ["paid", "cancelled"])
    def test_delete_non_pending_is_rejected(self, db_session, tenant_a, catalog, transition):
        p1, _ = catalog
        order = order_service.create_order(tenant_a.id, [{"product_id": p1.id, "quantity": 2}])
        if transition == "paid":
            order_service.mark_order_paid(tenant_a.id, order.id)
        else:
            order_service.cancel_order(tenant_a.id, order.id)
        stock_before = _stock(p1.id)

        with pytest.raises(ConflictError):
            order_service.delete_order(tenant_a.id, order.id)

        assert _stock(p1.id) == stock_before
        assert db_session.query(Order).count() == 1


class TestListOrders:

    def test_filters_and_pagination(self, db_session, tenant_a, tenant_b, catalog, product_b, make_order):
        p1, _ = catalog
        make_order(tenant_a, [(p1, 1)], status="pending")
        make_order(tenant_a, [(p1, 1)], status="paid")
        make_order(tenant_a, [(p1, 1)], status="paid")
        make_order(tenant_b, [(product_b, 1)], status="paid")

        result = order_service.list_orders(tenant_a.id, status="paid", per_page=1)

        assert result["pagination"]["total"] == 2
        assert result["pagination"]["total_pages"] == 2
        assert result["pagination"]["has_next"] is True
        assert result["count"] == 1
        assert all(o["tenant_id"] == tenant_a.id for o in result["items"])

    def test_unknown_status(self, db_session, tenant_a):
        with pytest.raises(ValidationError):
            order_service.list_orders(tenant_a.id, status="shipped")
