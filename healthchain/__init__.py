"""
HealthChain - a hash-linked ledger for health-insurance events.
"""

__version__ = "0.1.0"
