"""ORM Models — SQLAlchemy declarative models for vehicles and parking sessions.

Invariants:
    - All models inherit from Base (db/base.py)

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before create_all
      or alembic autogenerate runs
"""

from parkledger.models.vehicle import Vehicle  # noqa: F401
from parkledger.models.parking_session import ParkingSession  # noqa: F401
