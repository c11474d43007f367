# app/models/campaign.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, Boolean, Enum, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
import enum
from models.base import Base


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


def enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Campaign(Base):
    __tablename__ = "campaigns"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    campaign_number = Column(Integer, unique=True, nullable=False, index=True)  # public URL number
    user_id = Column(String(36), nullable=True, index=True)

    # 📝 details
    title = Column(String(200), nullable=False)
    organizer = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False)
    county = Column(String(100), nullable=False)
    eircode = Column(String(10), nullable=True)
    story = Column(Text, nullable=False)
    image = Column(String(500), nullable=True)
    social_links = Column(JSON, default=dict)  # {facebook, twitter, instagram, whatsapp}

    # 🎯 goal in whole euros; raised amount is always summed from donations
    goal_amount = Column(Integer, nullable=False)

    # 📅 event
    event_date = Column(String(10), nullable=False)  # YYYY-MM-DD
    event_time = Column(String(5), nullable=False, default="10:00")
    location = Column(String(500), nullable=False)

    # 📊 status
    is_active = Column(Boolean, default=True, nullable=False)
    is_approved = Column(Boolean, default=False, nullable=False)
    pack_payment_status = Column(
        Enum(PaymentStatus, name="pack_payment_status", values_callable=enum_values),
        default=PaymentStatus.PENDING,
        nullable=False,
    )
    pack_order_id = Column(String(36), nullable=True)  # advisory back-reference

    # 🕒 timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    approved_at = Column(DateTime(timezone=True), nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)
    deactivated_at = Column(DateTime(timezone=True), nullable=True)

    # 🔗 relationships
    pack_orders = relationship("PackOrder", back_populates="campaign")
    donations = relationship("Donation", back_populates="campaign")

    @property
    def is_public(self) -> bool:
        return bool(self.is_active and self.is_approved)
