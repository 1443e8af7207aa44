"""Business metrics for Prometheus monitoring."""
from prometheus_client import Counter

# Stripe API calls
stripe_requests_total = Counter(
    "stripe_requests_total",
    "Total Stripe API calls",
    labelnames=["operation", "outcome"],  # outcome: success, error
)

# Account views
account_views_total = Counter(
    "account_views_total",
    "Total account views built",
    labelnames=["mode"],  # full, brief, not_customer
)

# Subscription actions
subscription_actions_total = Counter(
    "subscription_actions_total",
    "Total subscription actions forwarded to Stripe",
    labelnames=["action"],  # cancel, cancel_now, create, swap, resume
)

# Refunds
refunds_total = Counter(
    "refunds_total",
    "Total refunds requested",
    labelnames=["kind"],  # full, partial
)
