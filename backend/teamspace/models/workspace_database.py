"""
Databases: small typed tables that live in a "databases" channel.

A database owns an ordered list of columns and a list of rows. Row values
are stored as one JSON object keyed by column id, so adding or dropping a
column never rewrites the table schema.
"""

from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from teamspace.core.ids import new_object_id
from teamspace.database import Base

COLUMN_TYPE_SELECT = "select"
COLUMN_TYPES = ("date", "text", COLUMN_TYPE_SELECT, "boolean", "number")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WorkspaceDatabase(Base):
    __tablename__ = "workspace_databases"

    id = Column(String(24), primary_key=True, default=new_object_id)
    channel_id = Column(String(24), ForeignKey("channels.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(String(24), ForeignKey("users.id"), nullable=False)
    title = Column(String(200), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    # Relationships
    channel = relationship("Channel", back_populates="databases")
    columns = relationship(
        "DatabaseColumn",
        back_populates="database",
        cascade="all, delete-orphan",
        order_by="[DatabaseColumn.order, DatabaseColumn.id]",
    )
    rows = relationship(
        "DatabaseRow",
        back_populates="database",
        cascade="all, delete-orphan",
        order_by="DatabaseRow.id",
    )


class DatabaseColumn(Base):
    __tablename__ = "database_columns"

    id = Column(String(24), primary_key=True, default=new_object_id)
    database_id = Column(
        String(24), ForeignKey("workspace_databases.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(100), nullable=False)
    # "date" | "text" | "select" | "boolean" | "number"
    type = Column(String(20), nullable=False)
    order = Column(Integer, nullable=False, default=1)

    # Relationships
    database = relationship("WorkspaceDatabase", back_populates="columns")
    options = relationship(
        "SelectOption",
        back_populates="column",
        cascade="all, delete-orphan",
        order_by="[SelectOption.order, SelectOption.id]",
    )


class SelectOption(Base):
    """One allowed value of a select column. Rows store the option id."""

    __tablename__ = "database_select_options"

    id = Column(String(24), primary_key=True, default=new_object_id)
    column_id = Column(String(24), ForeignKey("database_columns.id", ondelete="CASCADE"), nullable=False, index=True)
    value = Column(String(100), nullable=False)
    order = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    # Relationships
    column = relationship("DatabaseColumn", back_populates="options")


class DatabaseRow(Base):
    __tablename__ = "database_rows"

    id = Column(String(24), primary_key=True, default=new_object_id)
    database_id = Column(
        String(24), ForeignKey("workspace_databases.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # {column_id: value}; the JSON column is replaced, never mutated in place
    values = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    # Relationships
    database = relationship("WorkspaceDatabase", back_populates="rows")
