# db/models/form.py
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Text, Integer, Boolean, DateTime, Enum, ForeignKey, JSON, UniqueConstraint, func
from formdesk.db import Base
import enum
import uuid


class FieldKind(str, enum.Enum):
    text = "text"
    email = "email"
    number = "number"
    date = "date"
    textarea = "textarea"
    select = "select"
    image = "image"


class FormField(Base):
    __tablename__ = "form_fields"

    field_id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    form_id: Mapped[str] = mapped_column(String, ForeignKey("forms.form_id", ondelete="CASCADE"), nullable=False, index=True)
    label: Mapped[str] = mapped_column(Text, nullable=False)
    kind: Mapped[FieldKind] = mapped_column(Enum(FieldKind), nullable=False)
    is_required: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    # only populated for FieldKind.select
    options: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)

    form = relationship("Form", back_populates="fields")

    __table_args__ = (
        UniqueConstraint("form_id", "position", name="uq_form_field_position"),
    )


class Form(Base):
    __tablename__ = "forms"

    form_id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped["DateTime"] = mapped_column(DateTime(timezone=True), server_default=func.now())

    fields = relationship(
        "FormField",
        back_populates="form",
        cascade="all, delete-orphan",
        order_by="FormField.position",
    )
    responses = relationship("FormResponse", back_populates="form", cascade="all, delete-orphan")
