"""
Label Model.

The label table is a set: the name is the primary key.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from jotter.models.base import Base


class Label(Base):
    """Label database model."""

    __tablename__ = "labels"

    name: Mapped[str] = mapped_column(String(255), primary_key=True)

    def __repr__(self) -> str:
        return f"<Label(name={self.name!r})>"
