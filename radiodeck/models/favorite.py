from sqlalchemy import ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from radiodeck.db.base import Base, CreatedAtMixin, IntPrimaryKeyMixin


class Favorite(IntPrimaryKeyMixin, CreatedAtMixin, Base):
    __tablename__ = "favorites"

    # unique: at most one favorite row per station
    station_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("stations.id", ondelete="CASCADE"), unique=True, nullable=False
    )

    station = relationship("Station", back_populates="favorite", lazy="joined")
