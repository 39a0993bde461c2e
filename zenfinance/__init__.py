"""
ZenFinance - Source Package

A personal finance tracker: bank accounts, income/expense transactions,
an aggregated dashboard and AI-generated financial advice.

DESIGN PRINCIPLES:
1. Balances only move through the ledger
2. Fail early, fail visibly
3. Every collaborator is injected, never global
4. Storage layer is swappable (Google Sheets or in-memory demo)
"""

__version__ = "1.0.0"
__author__ = "ZenFinance Team"
