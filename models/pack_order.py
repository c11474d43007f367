# app/models/pack_order.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
import enum
from models.base import Base
from models.campaign import PaymentStatus, enum_values


class PackType(str, enum.Enum):
    FREE = "free"
    MEDIUM = "medium"
    LARGE = "large"


class PackOrder(Base):
    __tablename__ = "pack_orders"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    campaign_id = Column(String(36), ForeignKey("campaigns.id"), nullable=False, index=True)
    user_id = Column(String(36), nullable=True, index=True)

    pack_type = Column(
        Enum(PackType, name="pack_type", values_callable=enum_values),
        nullable=False,
    )
    amount = Column(Integer, nullable=False)  # cents
    garment_sizes = Column(JSON, nullable=True)  # {shirt_1..shirt_4}

    # shipping
    shipping_address = Column(JSON, nullable=False)
    mobile_number = Column(String(30), nullable=False)

    # payment
    payment_status = Column(
        Enum(PaymentStatus, name="pack_order_payment_status", values_callable=enum_values),
        default=PaymentStatus.PENDING,
        nullable=False,
        index=True,
    )
    stripe_payment_intent_id = Column(String(255), nullable=True, index=True)
    stripe_payment_link_id = Column(String(255), nullable=True, index=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)

    # fulfilment
    tracking_number = Column(String(100), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    campaign = relationship("Campaign", back_populates="pack_orders")
