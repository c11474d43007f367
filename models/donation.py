# app/models/donation.py
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, func, ForeignKey
from sqlalchemy.orm import relationship
from models.base import Base


class Donation(Base):
    __tablename__ = "donations"

    # the processor's payment intent id; one row per captured payment
    id = Column(String(255), primary_key=True)
    campaign_id = Column(String(36), ForeignKey("campaigns.id"), nullable=False, index=True)

    amount = Column(Integer, nullable=False)  # cents

    # donor
    donor_name = Column(String(200), nullable=True)  # always null when anonymous
    donor_email = Column(String(255), nullable=True)
    message = Column(Text, nullable=True)
    is_anonymous = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    campaign = relationship("Campaign", back_populates="donations")
