"""
Lending Core

Credit lifecycle engine for loan origination and administration: French-method
amortization, business-day adjusted schedules, derived installment and loan
status, and payment application using Decimal arithmetic throughout.
"""

__version__ = "1.0.0"
