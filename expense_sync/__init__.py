"""
Expense Sync - Source Package

An in-memory mirror of a personal-finance REST backend with
optimistic updates and an offline expense snapshot.

DESIGN PRINCIPLES:
1. Local state is the source of truth for the session
2. Remote failures are recorded, never raised
3. Domain rules fail early and visibly
4. Every remote outcome is auditable
5. Transport and snapshot storage are swappable
"""

__version__ = "1.0.0"
__author__ = "Expense Sync Team"
