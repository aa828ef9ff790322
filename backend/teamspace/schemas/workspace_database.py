from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

ColumnType = Literal["date", "text", "select", "boolean", "number"]


class ColumnCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: ColumnType
    # Option values, only for select columns
    options: list[str] = []

    @model_validator(mode="after")
    def select_needs_options(self) -> "ColumnCreate":
        if self.type == "select" and not self.options:
            raise ValueError("Options are required for select columns")
        if self.type != "select" and self.options:
            raise ValueError("Only select columns take options")
        return self


class ColumnUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    type: ColumnType | None = None
    order: int | None = Field(None, ge=1)


class DatabaseCreate(BaseModel):
    channel_id: str
    # Defaults to the caller; anything else is rejected
    author_id: str | None = None
    title: str = Field(..., min_length=3, max_length=200)
    columns: list[ColumnCreate] = Field(..., min_length=1)


class DatabaseUpdate(BaseModel):
    title: str | None = Field(None, min_length=3, max_length=200)


class OptionCreate(BaseModel):
    value: str = Field(..., min_length=1, max_length=100)


class OptionUpdate(BaseModel):
    value: str | None = Field(None, min_length=1, max_length=100)
    order: int | None = Field(None, ge=1)


class RowCreate(BaseModel):
    values: dict[str, Any] = {}


class RowUpdate(BaseModel):
    """Merged into the row. A null value clears that cell."""

    values: dict[str, Any]


class SelectOptionResponse(BaseModel):
    id: str
    value: str
    order: int
    created_at: datetime

    model_config = {"from_attributes": True}


class ColumnResponse(BaseModel):
    id: str
    name: str
    type: str
    order: int
    options: list[SelectOptionResponse] = []

    model_config = {"from_attributes": True}


class RowResponse(BaseModel):
    id: str
    values: dict[str, Any]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class DatabaseResponse(BaseModel):
    id: str
    channel_id: str
    author_id: str
    title: str
    columns: list[ColumnResponse]
    rows: list[RowResponse]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
