"""SQLAlchemy Core table definitions for the supplyctl database.

The registry's entire durable state lives here: the owner record, the sku
counter, items, ledger accounts, and the notification stream.
"""

from __future__ import annotations

from sqlalchemy import (
    CheckConstraint,
    Column,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
)

metadata = MetaData()

registry_meta = Table(
    "registry_meta",
    metadata,
    Column("key", Text, primary_key=True),
    Column("value", Text, nullable=False),
)

counters = Table(
    "counters",
    metadata,
    Column("name", Text, primary_key=True),
    Column("next_value", Integer, nullable=False, default=0, server_default="0"),
)

items = Table(
    "items",
    metadata,
    Column("sku", Integer, primary_key=True, autoincrement=False),
    Column("name", Text, nullable=False),
    Column("price", Integer, nullable=False),
    Column("state", Integer, nullable=False, default=0, server_default="0"),
    Column("seller", Text, nullable=False),
    Column("buyer", Text),  # NULL until purchased
    Column("created", Text, nullable=False),
    Column("modified", Text, nullable=False),
    CheckConstraint("price >= 0", name="ck_items_price_non_negative"),
    CheckConstraint("sku >= 0", name="ck_items_sku_non_negative"),
)

accounts = Table(
    "accounts",
    metadata,
    Column("identity", Text, primary_key=True),
    Column("balance", Integer, nullable=False, default=0, server_default="0"),
    Column("accepts_funds", Integer, nullable=False, default=1, server_default="1"),
    Column("created", Text, nullable=False),
    Column("modified", Text, nullable=False),
    CheckConstraint("balance >= 0", name="ck_accounts_balance_non_negative"),
)

notifications = Table(
    "notifications",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("hook_name", Text, nullable=False),
    Column("sku", Integer),
    Column("payload", Text, nullable=False),  # JSON
    Column("status", Text, nullable=False),
    Column("error", Text),
    Column("retries", Integer, default=0, server_default="0"),
    Column("created", Text, nullable=False),
    Column("completed", Text),
)

# Notification delivery statuses.
PENDING = "pending"
COMPLETED = "completed"
FAILED = "failed"
DEAD_LETTER = "dead_letter"

# ---------------------------------------------------------------------------
# Indexes for frequently filtered columns
# ---------------------------------------------------------------------------

Index("ix_items_state", items.c.state)
Index("ix_items_seller", items.c.seller)
Index("ix_items_buyer", items.c.buyer)
Index("ix_notifications_sku", notifications.c.sku)
Index("ix_notifications_status", notifications.c.status)
