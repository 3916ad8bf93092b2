"""Airport model definition."""

from uuid import UUID, uuid4

from sqlalchemy import String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base


class Airport(Base):
    """Airport reference record."""

    __tablename__ = "airports"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    iata_code: Mapped[str] = mapped_column(String(3), nullable=False, unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    city: Mapped[str] = mapped_column(String(128), nullable=False)
    country: Mapped[str] = mapped_column(String(128), nullable=False)

    def __repr__(self) -> str:
        return f"<Airport(code='{self.iata_code}', name='{self.name}')>"
