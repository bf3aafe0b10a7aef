"""
Artisan's Ledger - inventory ledger and weighted-average costing engine.
"""

__version__ = "1.0.0"
