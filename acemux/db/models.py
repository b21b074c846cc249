"""
SQLAlchemy ORM models for the AceMux service.

This module defines the single table backing the stream list:
- streams

Identifiers are supplied by the caller (AceStream content ids) and never change
once a row exists. Timestamps are maintained by the database: created_at on
insert, updated_at on every update.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Index, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base for ORM models."""

    pass


# STREAMS
class Stream(Base):
    """A named reference to an AceStream content id."""

    __tablename__ = "streams"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    photo_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("ix_streams_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"Stream(id={self.id!r}, name={self.name!r})"
