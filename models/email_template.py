# models/email_template.py
from sqlalchemy import *

from models.base import Base


class EmailTemplate(Base):
    __tablename__ = "email_templates"

    id = Column(Integer, primary_key=True)
    type = Column(String(100), unique=True, nullable=False)  # donation_receipt, campaign_approved, ...
    description = Column(Text)

    subject = Column(String(500), nullable=False)
    html_content = Column(Text, nullable=False)

    variables = Column(JSON, default=list)  # placeholder names used by the template

    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
