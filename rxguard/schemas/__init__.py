"""Pydantic Schemas — validation at the system boundary.

Invariants:
    - openfda.py validates every upstream payload before any field is consumed
    - rxguard.py is the public request/response contract (camelCase on the wire)

Design Decisions:
    - Separate from models: schemas are API contracts, models are persistence
"""
