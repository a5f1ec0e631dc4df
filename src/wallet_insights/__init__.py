"""
Solana wallet trading analytics: transaction interpretation, aggregation and
the HTTP surface that serves the results.
"""

__version__ = "1.0.0"
