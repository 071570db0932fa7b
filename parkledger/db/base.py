"""SQLAlchemy Declarative Base — metadata shared by vehicles and parking sessions.

Invariants:
    - Every model inherits from Base; alembic and create_all read Base.metadata
    - Constraint names are deterministic (naming convention), so migrations
      generated against SQLite and Postgres agree

Design Decisions:
    - Separate file for Base: models import it without importing each other
"""

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase

NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)
