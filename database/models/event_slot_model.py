from sqlalchemy import BigInteger, ForeignKey, String, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..base import Base

class EventSlot(Base):
    __tablename__ = "event_slots"

    id: Mapped[int] = mapped_column(primary_key=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("events.event_id", ondelete="CASCADE"))
    role_id: Mapped[int] = mapped_column(Integer)
    role_name: Mapped[str] = mapped_column(String(100))
    party: Mapped[str] = mapped_column(String(20))
    signed_up_user_id: Mapped[int] = mapped_column(BigInteger, nullable=True)

    event: Mapped["Event"] = relationship(back_populates="slots")

    # Один слот на участника и уникальные номера ролей в пределах события
    __table_args__ = (
        UniqueConstraint("event_id", "role_id", name="uq_event_slot_role"),
        UniqueConstraint("event_id", "signed_up_user_id", name="uq_event_slot_occupant"),
    )
