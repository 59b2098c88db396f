"""LogiFlow backend - tiered customer pricing and order-activity costing."""

__version__ = "0.1.0"
