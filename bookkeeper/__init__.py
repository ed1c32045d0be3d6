"""
Bookkeeper - Source Package

A small-business bookkeeping core: sales and expense transactions with
line items, user-defined expense categories, and the reports built on
top of them (totals, category breakdowns, cash/bank funds flow).

DESIGN PRINCIPLES:
1. Totals are always recomputed from line items, never stored
2. Validate before writing, never after
3. Reports are pure functions of a snapshot
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Bookkeeper Team"
