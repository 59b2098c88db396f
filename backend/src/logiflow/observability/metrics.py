"""Prometheus metrics for LogiFlow.

Defines and exposes operational metrics for monitoring and alerting.
"""

from prometheus_client import Counter, Histogram

# Price resolution metrics
price_resolutions_total = Counter(
    "logiflow_price_resolutions_total",
    "Total price resolutions",
    ["source"]  # source: customer|default|unavailable
)

price_resolution_duration_seconds = Histogram(
    "logiflow_price_resolution_duration_seconds",
    "Time spent resolving a unit price in seconds",
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

# Tier management metrics
price_tier_changes_total = Counter(
    "logiflow_price_tier_changes_total",
    "Total price tier mutations",
    ["action"]  # action: created|updated|deleted
)

price_tier_overlap_rejections_total = Counter(
    "logiflow_price_tier_overlap_rejections_total",
    "Price tier writes rejected because of an overlapping active tier",
    ["stage"]  # stage: validation|constraint
)

# Order costing metrics
order_lines_costed_total = Counter(
    "logiflow_order_lines_costed_total",
    "Order activity lines priced and snapshotted",
    ["source"]  # source: customer|default
)

order_costing_failures_total = Counter(
    "logiflow_order_costing_failures_total",
    "Order creations rolled back because a line could not be priced",
)
