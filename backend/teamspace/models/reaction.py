from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import relationship

from teamspace.core.ids import new_object_id
from teamspace.database import Base


class MessageReaction(Base):
    """One bucket per distinct emoji on a message."""

    __tablename__ = "message_reactions"

    id = Column(String(24), primary_key=True, default=new_object_id)
    message_id = Column(String(24), ForeignKey("messages.id", ondelete="CASCADE"), nullable=False, index=True)
    # Unicode emoji or :name: format, compared byte for byte
    emoji = Column(String(50), nullable=False)

    # Relationships
    message = relationship("Message", back_populates="reactions")
    users = relationship(
        "MessageReactionUser",
        back_populates="reaction",
        cascade="all, delete-orphan",
        order_by="MessageReactionUser.created_at",
    )

    __table_args__ = (
        # Concurrent first reactors with the same emoji collide here instead of
        # producing two buckets.
        UniqueConstraint("message_id", "emoji", name="unique_emoji_per_message"),
    )


class MessageReactionUser(Base):
    """Membership of one user in one reaction bucket."""

    __tablename__ = "message_reaction_users"

    reaction_id = Column(String(24), ForeignKey("message_reactions.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(String(24), primary_key=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    reaction = relationship("MessageReaction", back_populates="users")
