"""
Declarative base for the ledger tables.

Every row has a uuid4 primary key stored as a 36-character string, so the
same schema runs on PostgreSQL and on the SQLite databases used by tests.
Money columns are ``Numeric(38, 9)``; amounts never pass through float on
the way in.

``TrackedBase`` adds ``created_at``/``updated_at``/``created_by``.  Services
stamp both timestamps from the injected clock; the server defaults only
cover rows inserted outside a service.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUID on the Python side, ``VARCHAR(36)`` in the database."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else UUID(value)


class Base(DeclarativeBase):
    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(38, 9),
        datetime: DateTime(timezone=True),
        UUID: UUIDString(),
        int: BigInteger,
    }

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    # Actor from the X-Actor-Id header, "admin" when absent
    created_by: Mapped[str] = mapped_column(String(100), nullable=False)
