# Overview: Pytest coverage for the stock ledger (guarded stock mutations).

import pytest

from smallbiz.extensions import db
from smallbiz.models import Product
from smallbiz.services import stock_service
from smallbiz.services.stock_service import InsufficientStockError


class TestDecrement:

    def test_decrement_within_stock(self, db_session, product_a):
        assert stock_service.decrement(product_a, 4) is True
        db_session.commit()

        assert product_a.stock_quantity == 6

    def test_decrement_exact_stock_reaches_zero(self, db_session, product_a):
        assert stock_service.decrement(product_a, 10) is True
        db_session.commit()

        assert product_a.stock_quantity == 0

    def test_decrement_beyond_stock_is_rejected_without_mutation(self, db_session, product_a):
        assert stock_service.decrement(product_a, 11) is False
        db_session.commit()

        assert db.session.get(Product, product_a.id).stock_quantity == 10

    def test_decrement_or_raise(self, db_session, product_a):
        with pytest.raises(InsufficientStockError) as exc_info:
            stock_service.decrement_or_raise(product_a, 50)

        assert exc_info.value.product_id == product_a.id
        assert exc_info.value.requested == 50

    def test_decrement_uses_current_row_value(self, db_session, product_a):
        """A stale in-memory value must not let stock go negative."""
        stock_service.decrement(product_a, 8)
        db_session.commit()

        stale = Product(id=product_a.id, tenant_id=product_a.tenant_id, stock_quantity=10)
        assert stock_service.decrement(stale, 5) is False

    def test_non_positive_quantity_is_rejected(self, db_session, product_a):
        with pytest.raises(ValueError):
            stock_service.decrement(product_a, 0)


class TestIncrement:

    def test_increment_adds_stock(self, db_session, product_a):
        stock_service.increment(product_a, 7)
        db_session.commit()

        assert product_a.stock_quantity == 17

    def test_increment_requires_positive_quantity(self, db_session, product_a):
        with pytest.raises(ValueError):
            stock_service.increment(product_a, -1)


class TestLowStock:

    def test_low_stock_products_ordering_and_filters(self, db_session, tenant_a, tenant_b):
        rows = [
            Product(tenant_id=tenant_a.id, sku="A", name="A", price_cents=100, stock_quantity=2, low_stock_threshold=5),
            Product(tenant_id=tenant_a.id, sku="B", name="B", price_cents=100, stock_quantity=0, low_stock_threshold=5),
            Product(tenant_id=tenant_a.id, sku="C", name="C", price_cents=100, stock_quantity=5, low_stock_threshold=5),
            Product(tenant_id=tenant_a.id, sku="D", name="D", price_cents=100, stock_quantity=6, low_stock_threshold=5),
            Product(tenant_id=tenant_a.id, sku="E", name="E", price_cents=100, stock_quantity=0, low_stock_threshold=5, is_active=False),
            Product(tenant_id=tenant_b.id, sku="F", name="F", price_cents=100, stock_quantity=0, low_stock_threshold=5),
        ]
        db_session.add_all(rows)
        db_session.commit()

        result = stock_service.low_stock_products(tenant_a.id)

        assert [p.sku for p in result] == ["B", "A", "C"]
