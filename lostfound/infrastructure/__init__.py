"""Infrastructure Layer - database, object store, notifications, logging.

Invariants:
    - Infrastructure implements the protocols declared in core/repository_protocols.py
    - SQLAlchemy never leaks past this package and models/
"""
