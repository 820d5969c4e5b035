from __future__ import annotations

from ..extensions import db
from smallbiz.time_utils import to_utc_z

DEFAULT_TENANT_SETTINGS = {"currency": "USD", "timezone": "UTC"}


class Tenant(db.Model):
    """
    Multi-tenant root: every business account is a Tenant.

    All products, customers, orders and summaries carry tenant_id directly
    so every query can be filtered on a single column.
    Deactivating a tenant disables all access for its users.
    """
    __tablename__ = "tenants"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    domain = db.Column(db.String(255), nullable=True, unique=True, index=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    # currency + timezone
    settings = db.Column(db.JSON, nullable=False, default=lambda: dict(DEFAULT_TENANT_SETTINGS))

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Tenant id={self.id} name={self.name!r}>"

    @property
    def currency(self) -> str:
        return (self.settings or {}).get("currency", DEFAULT_TENANT_SETTINGS["currency"])

    @property
    def timezone(self) -> str:
        return (self.settings or {}).get("timezone", DEFAULT_TENANT_SETTINGS["timezone"])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "domain": self.domain,
            "is_active": self.is_active,
            "settings": {"currency": self.currency, "timezone": self.timezone},
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
