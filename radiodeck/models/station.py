from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from radiodeck.db.base import Base, CreatedAtMixin, IntPrimaryKeyMixin


class Station(IntPrimaryKeyMixin, CreatedAtMixin, Base):
    """A station held in the local store (cached directory entry or favorite target)."""

    __tablename__ = "stations"

    external_id: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    favicon: Mapped[str | None] = mapped_column(Text, nullable=True)
    tags: Mapped[str | None] = mapped_column(Text, nullable=True)
    country_code: Mapped[str | None] = mapped_column(String(8), nullable=True)
    codec: Mapped[str | None] = mapped_column(String(32), nullable=True)
    votes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    clickcount: Mapped[int | None] = mapped_column(Integer, nullable=True)

    favorite = relationship(
        "Favorite", back_populates="station", uselist=False, lazy="noload", cascade="all, delete-orphan"
    )
