"""Infrastructure Layer — external service clients, storage and cross-cutting concerns.

Invariants:
    - Infrastructure never imports from services/ or api/
    - All external failures mapped to RxGuardError subclasses (core/errors.py)

Design Decisions:
    - Thin wrappers over raw clients (httpx, SQLAlchemy, filesystem): one
      responsibility each, injected into services at startup
"""
