"""Listen storage model."""

from typing import Any, Self

from sqlalchemy import JSON, BigInteger, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from scrobbles.db.base import Base, TimestampMixin
from scrobbles.importing.models import Listen


class ListenRecord(TimestampMixin, Base):
    """One stored listen of one user. Canonical fields plus the open additional_info map."""

    __tablename__ = "listens"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_name: Mapped[str] = mapped_column(String(255), nullable=False)
    listened_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    track_name: Mapped[str] = mapped_column(String(500), nullable=False)
    artist_name: Mapped[str] = mapped_column(String(500), nullable=False)
    release_name: Mapped[str | None] = mapped_column(String(500))
    additional_info: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    __table_args__ = (
        Index("ix_listens_user_name", "user_name"),
        Index("ix_listens_user_listened_at", "user_name", "listened_at"),
    )

    @classmethod
    def from_listen(cls, user_name: str, listen: Listen) -> Self:
        return cls(
            user_name=user_name,
            listened_at=listen.listened_at,
            track_name=listen.track_name,
            artist_name=listen.artist_name,
            release_name=listen.release_name,
            additional_info=dict(listen.additional_info),
        )

    def to_listen(self) -> Listen:
        return Listen(
            listened_at=self.listened_at,
            track_name=self.track_name,
            artist_name=self.artist_name,
            release_name=self.release_name,
            additional_info=dict(self.additional_info or {}),
        )
