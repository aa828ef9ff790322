"""
Databases in "databases" channels: schema (columns and select options) and rows.

Any member of the channel's business can read a database and add, edit or
delete its rows. Changing the title or the columns, or deleting the whole
database, is limited to its author and the business owner/admins.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from teamspace.api.deps import get_current_user
from teamspace.core.ids import is_valid_object_id
from teamspace.database import get_db
from teamspace.models.business_membership import MANAGER_ROLES, BusinessMembership
from teamspace.models.channel import Channel
from teamspace.models.user import User
from teamspace.models.workspace_database import (
    COLUMN_TYPE_SELECT,
    DatabaseColumn,
    DatabaseRow,
    SelectOption,
    WorkspaceDatabase,
)
from teamspace.schemas.workspace_database import (
    ColumnCreate,
    ColumnResponse,
    ColumnUpdate,
    DatabaseCreate,
    DatabaseResponse,
    DatabaseUpdate,
    OptionCreate,
    OptionUpdate,
    RowCreate,
    RowResponse,
    RowUpdate,
    SelectOptionResponse,
)
from teamspace.services import activity_log_service as activity
from teamspace.services import database_tables as tables

router = APIRouter(prefix="/databases", tags=["databases"])

CHANNEL_TYPE_DATABASES = "databases"


def _channel_membership(channel: Channel, user: User, db: Session) -> BusinessMembership:
    membership = BusinessMembership.find(db, channel.business_id, user.id)
    if membership is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You are not a member of this business")
    return membership


def _get_database(database_id: str, user: User, db: Session) -> tuple[WorkspaceDatabase, BusinessMembership]:
    """404 for unknown ids, 403 when the caller is outside the channel's business."""
    database = db.get(WorkspaceDatabase, database_id) if is_valid_object_id(database_id) else None
    if database is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Database not found")
    return database, _channel_membership(database.channel, user, db)


def _require_editor(database: WorkspaceDatabase, membership: BusinessMembership) -> None:
    if membership.user_id != database.author_id and membership.role not in MANAGER_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the author or a business admin can change this database",
        )


def _get_column(database: WorkspaceDatabase, column_id: str) -> DatabaseColumn:
    for column in database.columns:
        if column.id == column_id:
            return column
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Column not found")


def _get_option(column: DatabaseColumn, option_id: str) -> SelectOption:
    for option in column.options:
        if option.id == option_id:
            return option
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Option not found")


def _get_row(database: WorkspaceDatabase, row_id: str, db: Session) -> DatabaseRow:
    row = db.query(DatabaseRow).filter(DatabaseRow.id == row_id, DatabaseRow.database_id == database.id).first()
    if not row:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Row not found")
    return row


def _build_column(data: ColumnCreate, order: int) -> DatabaseColumn:
    column = DatabaseColumn(name=data.name, type=data.type, order=order)
    column.options = [SelectOption(value=value, order=i + 1) for i, value in enumerate(data.options)]
    return column


def _log(db: Session, request: Request, database: WorkspaceDatabase, user_id: str, action: str, code: int) -> None:
    activity.log_activity(db, request, user_id, action, code, business_id=database.channel.business_id)


# ---------------------------------------------------------------------------
# Databases
# ---------------------------------------------------------------------------


@router.post("", response_model=DatabaseResponse, status_code=201)
async def create_database(
    data: DatabaseCreate,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if data.author_id is not None and data.author_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="AuthorID must match authenticated user ID",
        )

    channel = db.get(Channel, data.channel_id) if is_valid_object_id(data.channel_id) else None
    if channel is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Channel not found")
    _channel_membership(channel, current_user, db)
    if channel.type != CHANNEL_TYPE_DATABASES:
        raise ValueError("Databases can only be created in databases channels")

    database = WorkspaceDatabase(channel_id=channel.id, author_id=current_user.id, title=data.title)
    database.columns = [_build_column(column, i + 1) for i, column in enumerate(data.columns)]
    db.add(database)
    db.commit()
    db.refresh(database)

    _log(db, request, database, current_user.id, activity.DATABASE_CREATE, 201)
    return database


@router.get("/channel/{channel_id}", response_model=list[DatabaseResponse])
async def list_channel_databases(
    channel_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    channel = db.get(Channel, channel_id) if is_valid_object_id(channel_id) else None
    if channel is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Channel not found")
    _channel_membership(channel, current_user, db)
    return (
        db.query(WorkspaceDatabase)
        .filter(WorkspaceDatabase.channel_id == channel.id)
        .order_by(WorkspaceDatabase.created_at, WorkspaceDatabase.id)
        .all()
    )


@router.get("/{database_id}", response_model=DatabaseResponse)
async def get_database(
    database_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    database, _ = _get_database(database_id, current_user, db)
    return database


@router.patch("/{database_id}", response_model=DatabaseResponse)
async def update_database(
    database_id: str,
    data: DatabaseUpdate,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    database, membership = _get_database(database_id, current_user, db)
    _require_editor(database, membership)
    if data.title is None:
        raise ValueError("No data to update")

    database.title = data.title
    db.commit()
    db.refresh(database)

    _log(db, request, database, current_user.id, activity.DATABASE_UPDATE, 200)
    return database


@router.delete("/{database_id}", status_code=204)
async def delete_database(
    database_id: str,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete a database with its columns, options and rows."""
    database, membership = _get_database(database_id, current_user, db)
    _require_editor(database, membership)
    business_id = database.channel.business_id
    db.delete(database)
    db.commit()

    activity.log_activity(db, request, current_user.id, activity.DATABASE_DELETE, 204, business_id=business_id)


# ---------------------------------------------------------------------------
# Rows
# ---------------------------------------------------------------------------


@router.get("/{database_id}/rows", response_model=list[RowResponse])
async def list_rows(
    database_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    database, _ = _get_database(database_id, current_user, db)
    return database.rows


@router.post("/{database_id}/rows", response_model=RowResponse, status_code=201)
async def add_row(
    database_id: str,
    data: RowCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    database, _ = _get_database(database_id, current_user, db)
    row = tables.new_row(database, data.values)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@router.get("/{database_id}/rows/{row_id}", response_model=RowResponse)
async def get_row(
    database_id: str,
    row_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    database, _ = _get_database(database_id, current_user, db)
    return _get_row(database, row_id, db)


@router.patch("/{database_id}/rows/{row_id}", response_model=RowResponse)
async def update_row(
    database_id: str,
    row_id: str,
    data: RowUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    database, _ = _get_database(database_id, current_user, db)
    row = _get_row(database, row_id, db)
    if not data.values:
        raise ValueError("Row values are required")

    row.values = tables.merge_row_values(database, row.values, data.values)
    db.commit()
    db.refresh(row)
    return row


@router.delete("/{database_id}/rows/{row_id}", status_code=204)
async def delete_row(
    database_id: str,
    row_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    database, _ = _get_database(database_id, current_user, db)
    db.delete(_get_row(database, row_id, db))
    db.commit()


# ---------------------------------------------------------------------------
# Columns
# ---------------------------------------------------------------------------


@router.get("/{database_id}/columns", response_model=list[ColumnResponse])
async def list_columns(
    database_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    database, _ = _get_database(database_id, current_user, db)
    return database.columns


@router.post("/{database_id}/columns", response_model=ColumnResponse, status_code=201)
async def add_column(
    database_id: str,
    data: ColumnCreate,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    database, membership = _get_database(database_id, current_user, db)
    _require_editor(database, membership)

    column = _build_column(data, tables.next_order(database.columns))
    database.columns.append(column)
    db.commit()
    db.refresh(column)

    _log(db, request, database, current_user.id, activity.DATABASE_UPDATE, 201)
    return column


@router.get("/{database_id}/columns/{column_id}", response_model=ColumnResponse)
async def get_column(
    database_id: str,
    column_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    database, _ = _get_database(database_id, current_user, db)
    return _get_column(database, column_id)


@router.patch("/{database_id}/columns/{column_id}", response_model=ColumnResponse)
async def update_column(
    database_id: str,
    column_id: str,
    data: ColumnUpdate,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Rename, reorder or retype a column.

    A type change clears the column's cells in every row, and moving away
    from select drops the column's options.
    """
    database, membership = _get_database(database_id, current_user, db)
    _require_editor(database, membership)
    column = _get_column(database, column_id)
    update_data = {field: value for field, value in data.model_dump(exclude_unset=True).items() if value is not None}
    if not update_data:
        raise ValueError("No data to update")

    new_type = update_data.pop("type", column.type)
    if new_type != column.type:
        tables.clear_column(database, column.id)
        if column.type == COLUMN_TYPE_SELECT:
            column.options = []
        column.type = new_type
    for field, value in update_data.items():
        setattr(column, field, value)
    db.commit()
    db.refresh(column)

    _log(db, request, database, current_user.id, activity.DATABASE_UPDATE, 200)
    return column


@router.delete("/{database_id}/columns/{column_id}", status_code=204)
async def delete_column(
    database_id: str,
    column_id: str,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    database, membership = _get_database(database_id, current_user, db)
    _require_editor(database, membership)
    column = _get_column(database, column_id)
    if len(database.columns) == 1:
        raise ValueError("A database needs at least one column")

    tables.clear_column(database, column.id)
    database.columns.remove(column)
    db.commit()

    _log(db, request, database, current_user.id, activity.DATABASE_UPDATE, 204)


# ---------------------------------------------------------------------------
# Select options
# ---------------------------------------------------------------------------


def _select_column(database: WorkspaceDatabase, column_id: str) -> DatabaseColumn:
    column = _get_column(database, column_id)
    if column.type != COLUMN_TYPE_SELECT:
        raise ValueError("Options are only available on select columns")
    return column


@router.get("/{database_id}/columns/{column_id}/options", response_model=list[SelectOptionResponse])
async def list_options(
    database_id: str,
    column_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    database, _ = _get_database(database_id, current_user, db)
    return _select_column(database, column_id).options


@router.post("/{database_id}/columns/{column_id}/options", response_model=SelectOptionResponse, status_code=201)
async def add_option(
    database_id: str,
    column_id: str,
    data: OptionCreate,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    database, membership = _get_database(database_id, current_user, db)
    _require_editor(database, membership)
    column = _select_column(database, column_id)

    option = SelectOption(value=data.value, order=tables.next_order(column.options))
    column.options.append(option)
    db.commit()
    db.refresh(option)

    _log(db, request, database, current_user.id, activity.DATABASE_UPDATE, 201)
    return option


@router.get("/{database_id}/columns/{column_id}/options/{option_id}", response_model=SelectOptionResponse)
async def get_option(
    database_id: str,
    column_id: str,
    option_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    database, _ = _get_database(database_id, current_user, db)
    return _get_option(_select_column(database, column_id), option_id)


@router.patch("/{database_id}/columns/{column_id}/options/{option_id}", response_model=SelectOptionResponse)
async def update_option(
    database_id: str,
    column_id: str,
    option_id: str,
    data: OptionUpdate,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    database, membership = _get_database(database_id, current_user, db)
    _require_editor(database, membership)
    option = _get_option(_select_column(database, column_id), option_id)
    update_data = {field: value for field, value in data.model_dump(exclude_unset=True).items() if value is not None}
    if not update_data:
        raise ValueError("No data to update")

    for field, value in update_data.items():
        setattr(option, field, value)
    db.commit()
    db.refresh(option)

    _log(db, request, database, current_user.id, activity.DATABASE_UPDATE, 200)
    return option


@router.delete("/{database_id}/columns/{column_id}/options/{option_id}", status_code=204)
async def delete_option(
    database_id: str,
    column_id: str,
    option_id: str,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete an option and clear the cells that selected it."""
    database, membership = _get_database(database_id, current_user, db)
    _require_editor(database, membership)
    column = _select_column(database, column_id)
    option = _get_option(column, option_id)

    tables.clear_option(database, column.id, option.id)
    column.options.remove(option)
    db.commit()

    _log(db, request, database, current_user.id, activity.DATABASE_UPDATE, 204)
