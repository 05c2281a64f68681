"""Application constants shared by the payment, pricing and document services."""

from decimal import Decimal

TAX_RATE = Decimal("0.12")

CURRENCY = "usd"
# Stripe refuses charges below $0.50.
MINIMUM_CHARGE_AMOUNT = 50

DEFAULT_SERVICE_NAME = "NCLEX Processing"
DEFAULT_SERVICE_STATE = "New York"
DEFAULT_FRONTEND_URL = "http://localhost:5000"

CORS_MAX_AGE_SECONDS = 86400

OPENED_QUOTES_KEY = "openedQuotes"
HIDDEN_EMAILS_KEY = "hiddenEmails"
EMAIL_READ_STATUS_PREFIX = "email_read_status_"
