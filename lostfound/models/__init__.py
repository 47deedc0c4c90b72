"""ORM Models - SQLAlchemy declarative models for persisted entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - FoundObjectRow is the only aggregate; users live in the account service

Design Decisions:
    - All models imported here so Base.metadata is complete before create_all/alembic
"""

from lostfound.models.found_object import FoundObjectRow  # noqa: F401
