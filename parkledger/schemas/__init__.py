"""Pydantic Schemas — request/response validation for API endpoints.

Invariants:
    - Schemas validate at system boundary (user input, API responses)
    - Derived values (duration, cost) are computed when a response is built,
      never read from storage

Design Decisions:
    - Separate from models: schemas are API contracts, models are persistence
"""
