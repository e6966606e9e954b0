"""
chairbook - appointment scheduling for a single-chair shop.
"""

__version__ = "0.1.0"
