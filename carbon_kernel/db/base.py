"""
Module: carbon_kernel.db.base
Responsibility: Declarative base class for all SQLAlchemy ORM models and the
    type annotation map for consistent column types.
Architecture position: Kernel > DB.  This is the lowest-level import target
    within the kernel.  ALL model files import from here.  This module MUST NOT
    import from models/, services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - datetime maps to DateTime(timezone=True): every stored timestamp is
      timezone-aware.
    - int maps to BigInteger: versions and sequence counters never overflow
      a 32-bit column.
"""

from datetime import datetime
from typing import ClassVar

from sqlalchemy import BigInteger, DateTime, LargeBinary
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Declarative base for all SQLAlchemy models.

    Contract:
        Every ORM model in the kernel inherits from Base.  World-state rows
        are addressed by their string key, so Base
        does not impose a surrogate primary key; each model declares its own.

    Guarantees:
        - datetime maps to DateTime(timezone=True).
        - int maps to BigInteger.
        - bytes maps to LargeBinary (BYTEA on PostgreSQL, BLOB on SQLite).
    """

    type_annotation_map: ClassVar[dict] = {
        datetime: DateTime(timezone=True),
        int: BigInteger,
        bytes: LargeBinary,
    }
