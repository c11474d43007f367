from models.base import Base

from models.campaign import Campaign, PaymentStatus
from models.pack_order import PackOrder, PackType
from models.donation import Donation
from models.email_template import EmailTemplate
