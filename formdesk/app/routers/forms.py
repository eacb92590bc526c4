"""Operator endpoints for authoring forms.

Every route requires a signed operator token `t`; forms owned by another
operator are reported as not found.
"""
# app/routers/forms.py
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from formdesk.app.core.security import require_operator
from formdesk.app.schemas.form import FormIn, FormOut, FormSummaryOut, SetActiveIn
from formdesk.app.services import forms as forms_service
from formdesk.db.session import get_db

router = APIRouter(prefix="/api/forms", tags=["forms"])


@router.post("", response_model=FormOut, status_code=status.HTTP_201_CREATED)
def create_form(payload: FormIn, operator_id: str = Depends(require_operator), db: Session = Depends(get_db)):
    """Create a form with its initial field set.

    Errors:
        400: Empty title, no fields, empty label or a select without options.
    """
    form = forms_service.create_form(db, operator_id, payload.title, payload.description, payload.fields)
    return forms_service.to_form_out(form)


@router.get("", response_model=List[FormSummaryOut])
def list_forms(operator_id: str = Depends(require_operator), db: Session = Depends(get_db)):
    return [forms_service.to_form_summary(f) for f in forms_service.list_forms(db, operator_id)]


@router.get("/{form_id}", response_model=FormOut)
def get_form(form_id: str, operator_id: str = Depends(require_operator), db: Session = Depends(get_db)):
    return forms_service.to_form_out(forms_service.get_form(db, operator_id, form_id))


@router.put("/{form_id}", response_model=FormOut)
def replace_form(form_id: str, payload: FormIn, operator_id: str = Depends(require_operator),
                 db: Session = Depends(get_db)):
    """Replace the title, description and the whole field set of a form.

    Field ids change on every replace; older responses keep their answers
    under the previous ids.
    """
    form = forms_service.replace_form(db, operator_id, form_id, payload.title, payload.description, payload.fields)
    return forms_service.to_form_out(form)


@router.patch("/{form_id}/active", response_model=FormOut)
def set_active(form_id: str, payload: SetActiveIn, operator_id: str = Depends(require_operator),
               db: Session = Depends(get_db)):
    form = forms_service.set_active(db, operator_id, form_id, payload.active)
    return forms_service.to_form_out(form)


@router.delete("/{form_id}")
def delete_form(form_id: str, operator_id: str = Depends(require_operator), db: Session = Depends(get_db)):
    forms_service.delete_form(db, operator_id, form_id)
    return {"ok": True}
