from sqlalchemy import BigInteger, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..base import Base

class Event(Base):
    __tablename__ = "events"

    # ID сообщения в Discord, выдается при публикации анонса
    event_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    guild_id: Mapped[int] = mapped_column(BigInteger, index=True)
    channel_id: Mapped[int] = mapped_column(BigInteger, nullable=True)
    owner_id: Mapped[int] = mapped_column(BigInteger)
    title: Mapped[str] = mapped_column(String(255))
    comp_name: Mapped[str] = mapped_column(String(100))
    date: Mapped[str] = mapped_column(String(10))
    time: Mapped[str] = mapped_column(String(5))
    lock_offset_minutes: Mapped[int] = mapped_column(Integer, nullable=True)

    slots: Mapped[list["EventSlot"]] = relationship(
        back_populates="event", cascade="all, delete-orphan", lazy="selectin",
        order_by="EventSlot.role_id"
    )
