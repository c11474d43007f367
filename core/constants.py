# constants.py

# Starter packs: price is the postage contribution in cents
PACK_OPTIONS = {
    "free": {
        "name": "Free Starter Pack",
        "price": 1000,
        "garment_slots": 0,
    },
    "medium": {
        "name": "Medium Pack",
        "price": 3500,
        "garment_slots": 2,
    },
    "large": {
        "name": "Large Pack",
        "price": 6000,
        "garment_slots": 4,
    },
}

GARMENT_SIZES = ("XS", "S", "M", "L", "XL", "XXL")
GARMENT_SLOT_KEYS = ("shirt_1", "shirt_2", "shirt_3", "shirt_4")

SHIPPING_REQUIRED_FIELDS = ("name", "address_line_1", "city", "county", "eircode", "country")

# Smallest donation accepted, in cents (one euro)
MIN_DONATION_MINOR_UNITS = 100

EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"

# Stripe decline codes shown to donors and organizers
CARD_ERROR_MESSAGES = {
    "card_declined": "Your card was declined. Please try a different payment method.",
    "expired_card": "Your card has expired. Please use a different card.",
    "incorrect_cvc": "Your card's security code is incorrect.",
    "processing_error": "An error occurred while processing your card. Please try again.",
}
DEFAULT_CARD_ERROR_MESSAGE = "Payment failed. Please try again."

TEMPLATE_TYPES = {
    "donation_receipt": "Receipt sent to a donor after a successful donation",
    "campaign_approved": "Sent to the organizer when a campaign goes live",
    "campaign_rejected": "Sent to the organizer when a campaign is rejected",
    "pack_ordered": "Confirmation that the starter pack postage was paid",
    "pack_payment_link": "Payment link for an unpaid starter pack",
}

REALTIME_TABLES = ("campaigns", "pack_orders", "donations")
