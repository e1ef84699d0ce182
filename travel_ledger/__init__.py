"""
Travel Ledger - Source Package

A local expense-splitting ledger for group trips: record shared
expenses, see who paid what, and get a short list of transfers
that settles everyone up.

DESIGN PRINCIPLES:
1. The settlement engine is pure: same history in, same plan out
2. Balances are recomputed from the full history, never cached
3. Invalid input is reported, never silently corrected
4. Every user action is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Travel Ledger Team"
