"""
Reaction aggregation.

A message's reactions are buckets keyed by emoji (exact string match, no
normalisation), each holding the set of user ids that reacted with it:

  - at most one bucket per emoji per message
    (unique constraint on message_reactions(message_id, emoji))
  - at most one entry per user per bucket
    (primary key on message_reaction_users(reaction_id, user_id))
  - empty buckets are pruned after a removal

Adding never decides "new bucket vs. existing bucket" from a prior read.
Both the bucket and the membership row are written with
INSERT ... ON CONFLICT DO NOTHING, so two users reacting with the same new
emoji at the same time end up in one bucket.
"""

import logging
from collections.abc import Iterable

from sqlalchemy import delete, insert, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from teamspace.core.ids import new_object_id
from teamspace.models.message import Message
from teamspace.models.reaction import MessageReaction, MessageReactionUser
from teamspace.schemas.message import ReactionResponse

logger = logging.getLogger(__name__)

# Dialect-specific INSERT constructs that support ON CONFLICT DO NOTHING.
_CONFLICT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

ADD_ATTEMPTS = 3


class ReactionRaceError(RuntimeError):
    """The bucket kept disappearing under a concurrent prune."""


def _insert_ignoring_conflict(db: Session, model, values: dict, conflict_columns: list[str]) -> None:
    dialect = db.get_bind().dialect.name
    conflict_insert = _CONFLICT_INSERTS.get(dialect)
    if conflict_insert is not None:
        stmt = conflict_insert(model).values(**values).on_conflict_do_nothing(index_elements=conflict_columns)
        db.execute(stmt)
        return

    # Fallback for dialects without ON CONFLICT: let the constraint decide.
    try:
        with db.begin_nested():
            db.execute(insert(model).values(**values))
    except IntegrityError:
        pass


def _bucket_id(db: Session, message_id: str, emoji: str) -> str | None:
    return db.execute(
        select(MessageReaction.id).where(
            MessageReaction.message_id == message_id,
            MessageReaction.emoji == emoji,
        )
    ).scalar_one_or_none()


def add_reaction(db: Session, message_id: str, user_id: str, emoji: str) -> bool:
    """Put user_id in the emoji bucket of a message, creating the bucket if
    needed. Idempotent. Returns False when the message does not exist."""
    for attempt in range(1, ADD_ATTEMPTS + 1):
        found = db.execute(select(Message.id).where(Message.id == message_id)).scalar_one_or_none()
        if found is None:
            return False

        try:
            _insert_ignoring_conflict(
                db,
                MessageReaction,
                {"id": new_object_id(), "message_id": message_id, "emoji": emoji},
                ["message_id", "emoji"],
            )
        except IntegrityError:
            # Message deleted since the check above; the next pass reports it missing.
            db.rollback()
            logger.info("Message %s deleted while adding reaction %r, rechecking (%d)", message_id, emoji, attempt)
            continue
        reaction_id = _bucket_id(db, message_id, emoji)
        if reaction_id is None:
            db.rollback()
            logger.info("Reaction bucket %r on message %s vanished, retrying (%d)", emoji, message_id, attempt)
            continue

        try:
            _insert_ignoring_conflict(
                db,
                MessageReactionUser,
                {"reaction_id": reaction_id, "user_id": user_id},
                ["reaction_id", "user_id"],
            )
            db.commit()
        except IntegrityError:
            # Bucket pruned between the two statements (foreign key violation).
            db.rollback()
            logger.info("Reaction bucket %r on message %s pruned concurrently, retrying (%d)", emoji, message_id, attempt)
            continue
        return True

    raise ReactionRaceError(f"Could not add reaction {emoji!r} to message {message_id}")


def remove_reaction(db: Session, message_id: str, user_id: str, emoji: str) -> bool:
    """Take user_id out of the emoji bucket of a message.

    Returns False when the message has no bucket for that emoji (including
    when the message itself is missing). Removing a user who is not in the
    bucket is a no-op.
    """
    reaction_id = _bucket_id(db, message_id, emoji)
    if reaction_id is None:
        return False

    db.execute(
        delete(MessageReactionUser).where(
            MessageReactionUser.reaction_id == reaction_id,
            MessageReactionUser.user_id == user_id,
        )
    )
    db.commit()

    prune_empty_buckets(db, message_id)
    return True


def prune_empty_buckets(db: Session, message_id: str) -> None:
    """Best-effort: delete buckets of a message that have no users left.

    A failure is logged and swallowed; the removal that preceded it has
    already been committed.
    """
    has_users = (
        select(MessageReactionUser.reaction_id)
        .where(MessageReactionUser.reaction_id == MessageReaction.id)
        .correlate(MessageReaction)
    )
    try:
        db.execute(
            delete(MessageReaction)
            .where(MessageReaction.message_id == message_id, ~has_users.exists())
            .execution_options(synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Failed to prune empty reaction buckets on message %s: %s", message_id, exc)


def group_reactions(buckets: Iterable[MessageReaction]) -> list[ReactionResponse]:
    """Render buckets for the wire. Empty buckets are never shown, even if a
    prune has not caught up with them yet."""
    grouped = []
    for bucket in buckets:
        user_ids = [entry.user_id for entry in bucket.users]
        if user_ids:
            grouped.append(ReactionResponse(emoji=bucket.emoji, user_ids=user_ids))
    return grouped
