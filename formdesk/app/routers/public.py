"""Public endpoints for respondents.

No authentication: anyone holding a form id can read an active form and
submit to it.
"""
# app/routers/public.py
from fastapi import APIRouter, Depends, Request, status
from starlette.datastructures import UploadFile
from sqlalchemy.orm import Session

from formdesk.app.schemas.form import FormOut
from formdesk.app.schemas.response import SubmissionOut, ValidationErrorOut
from formdesk.app.services import forms as forms_service
from formdesk.app.services.field_types import UploadedAsset
from formdesk.app.services.storage import get_storage
from formdesk.app.services.submission import submit
from formdesk.db.session import get_db

router = APIRouter(prefix="/api/public/forms", tags=["public"])


@router.get("/{form_id}", response_model=FormOut)
def get_public_form(form_id: str, db: Session = Depends(get_db)):
    return forms_service.to_form_out(forms_service.get_active_form(db, form_id))


@router.post(
    "/{form_id}/responses",
    response_model=SubmissionOut,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": ValidationErrorOut}},
)
async def submit_response(form_id: str, request: Request, db: Session = Depends(get_db)):
    """Submit answers as multipart form data keyed by field id.

    Image fields are sent as file parts.

    Errors:
        404: The form does not exist or is not active.
        422: One or more answers are invalid; every offending field is listed.
    """
    answers = {}
    async with request.form() as data:
        for key, value in data.multi_items():
            if isinstance(value, UploadFile):
                if not value.filename:
                    continue
                answers[key] = UploadedAsset(
                    filename=value.filename,
                    content_type=value.content_type,
                    data=await value.read(),
                )
            else:
                answers[key] = value
    response_id = await submit(db, get_storage(), form_id, answers)
    return SubmissionOut(response_id=response_id)
