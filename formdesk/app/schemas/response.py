"""Pydantic schemes for collected responses.
"""
# app/schemas/response.py
from pydantic import BaseModel
from typing import Dict, List
from datetime import datetime


class ResponseOut(BaseModel):
    id: str
    form_id: str
    submitted_at: datetime
    answers: Dict[str, str]


class SubmissionOut(BaseModel):
    response_id: str


class UpdateAnswersIn(BaseModel):
    answers: Dict[str, str]


class FieldErrorOut(BaseModel):
    field_id: str
    label: str
    code: str


class ValidationErrorOut(BaseModel):
    error_code: str
    message: str
    errors: List[FieldErrorOut]
