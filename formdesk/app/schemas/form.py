"""Pydantic schemes for forms and their fields.
"""
# app/schemas/form.py
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from formdesk.db.models import FieldKind


class FieldIn(BaseModel):
    label: str
    kind: FieldKind = FieldKind.text
    required: bool = False
    order: Optional[int] = Field(default=None, ge=0)
    options: Optional[List[str]] = None


class FormIn(BaseModel):
    title: str
    description: Optional[str] = None
    fields: List[FieldIn] = Field(default_factory=list)


class SetActiveIn(BaseModel):
    active: bool


class FieldOut(BaseModel):
    id: str
    label: str
    kind: FieldKind
    required: bool
    order: int
    options: List[str] | None = None
    render_hint: str


class FormOut(BaseModel):
    id: str
    title: str
    description: str | None = None
    active: bool
    created_at: datetime | None = None
    share_url: str
    fields: List[FieldOut]


class FormSummaryOut(BaseModel):
    id: str
    title: str
    description: str | None = None
    active: bool
    created_at: datetime | None = None
    share_url: str
