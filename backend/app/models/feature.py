from sqlalchemy import CheckConstraint, ForeignKey, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.db import Base


class Feature(Base):
    __tablename__ = "feature_ideas"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(String, nullable=False)
    category: Mapped[str] = mapped_column(String, nullable=False)
    icon: Mapped[str] = mapped_column(String, nullable=False, default="💡")
    status: Mapped[str] = mapped_column(String, nullable=False, default="voting")
    created_by: Mapped[str] = mapped_column(String, ForeignKey("users.id"), nullable=False)
    created_at: Mapped[str] = mapped_column(String, nullable=False)
    # Soft delete marker; a deleted feature is hidden and its votes are frozen
    deleted_at: Mapped[str | None] = mapped_column(String, nullable=True, default=None)

    __table_args__ = (
        Index("idx_feature_ideas_live_created", "deleted_at", "created_at"),
    )


class Vote(Base):
    __tablename__ = "feature_votes"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    feature_id: Mapped[str] = mapped_column(
        String, ForeignKey("feature_ideas.id"), nullable=False
    )
    voter_id: Mapped[str] = mapped_column(String, ForeignKey("users.id"), nullable=False)
    direction: Mapped[str] = mapped_column(String, nullable=False)  # "up" or "down"
    created_at: Mapped[str] = mapped_column(String, nullable=False)
    updated_at: Mapped[str] = mapped_column(String, nullable=False)
    deleted_at: Mapped[str | None] = mapped_column(String, nullable=True, default=None)

    __table_args__ = (
        CheckConstraint("direction IN ('up', 'down')", name="ck_feature_votes_direction"),
        # At most one live vote per (feature, voter); retracted rows are kept for audit
        Index(
            "uq_feature_votes_live",
            "feature_id",
            "voter_id",
            unique=True,
            sqlite_where=text("deleted_at IS NULL"),
            postgresql_where=text("deleted_at IS NULL"),
        ),
        Index("idx_feature_votes_voter", "voter_id"),
    )
