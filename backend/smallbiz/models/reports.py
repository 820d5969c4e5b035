from __future__ import annotations

from ..extensions import db
from smallbiz.time_utils import to_utc_z


class DailySalesSummary(db.Model):
    """
    Precomputed paid-order totals for one tenant and one calendar day (UTC).

    Written by the nightly summary job (upsert on tenant_id + date) and read
    by the daily sales report before it falls back to on-demand aggregation.
    """
    __tablename__ = "daily_sales_summaries"
    __table_args__ = (
        db.UniqueConstraint("tenant_id", "date", name="uq_daily_sales_tenant_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False)

    total_orders = db.Column(db.Integer, nullable=False, default=0)
    total_sales_cents = db.Column(db.Integer, nullable=False, default=0)
    average_order_value_cents = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "date": self.date.isoformat(),
            "total_orders": self.total_orders,
            "total_sales_cents": self.total_sales_cents,
            "average_order_value_cents": self.average_order_value_cents,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
