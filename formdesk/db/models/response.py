# db/models/response.py
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Text, DateTime, ForeignKey, PrimaryKeyConstraint
from formdesk.db import Base
from datetime import datetime, timezone
import uuid


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ResponseAnswer(Base):
    __tablename__ = "response_answers"

    response_id: Mapped[str] = mapped_column(String, ForeignKey("form_responses.response_id", ondelete="CASCADE"), nullable=False)
    # no FK to form_fields: answers outlive a destructive schema edit
    field_id: Mapped[str] = mapped_column(String, nullable=False)
    answer: Mapped[str] = mapped_column(Text, nullable=False)

    response = relationship("FormResponse", back_populates="answers")

    __table_args__ = (PrimaryKeyConstraint("response_id", "field_id"),)


class FormResponse(Base):
    __tablename__ = "form_responses"

    response_id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    form_id: Mapped[str] = mapped_column(String, ForeignKey("forms.form_id", ondelete="CASCADE"), nullable=False, index=True)
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    form = relationship("Form", back_populates="responses")
    answers = relationship("ResponseAnswer", back_populates="response", cascade="all, delete-orphan")

    def answer_map(self) -> dict[str, str]:
        return {a.field_id: a.answer for a in self.answers}
