"""
Parcel Ledger - Revolving Credit & Installment Service

A FastAPI-based microservice that issues revolving credit tokens, reserves
credit at purchase time, splits purchases into dated installments and
releases credit as installments are paid.
"""

__version__ = "0.1.0"
