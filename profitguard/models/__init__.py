"""ProfitGuard data models."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID

from profitguard.database import Base


def utcnow():
    return datetime.now(timezone.utc)


class SavedReturn(Base):
    """A return calculation the merchant chose to keep in history."""
    __tablename__ = "saved_returns"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    shopify_order_id = Column(String(200), nullable=False, index=True)
    shopify_order_name = Column(String(100), nullable=False)
    net_profit_change = Column(Numeric(12, 2), default=0)
    total_revenue_lost = Column(Numeric(12, 2), default=0)
    inventory_value = Column(Numeric(12, 2), default=0)
    is_resellable = Column(Boolean, default=False, nullable=False)
    suggestion = Column(Text, default="")
    return_reason = Column(String(200), default="")
    product_condition = Column(String(100), default="")  # display label
    return_shipping_cost = Column(Numeric(12, 2), default=0)
    handling_fee = Column(Numeric(12, 2), default=0)
    is_archived = Column(Boolean, default=False, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
