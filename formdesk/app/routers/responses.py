"""Operator endpoints for collected responses and their exports.
"""
# app/routers/responses.py
from typing import List

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session

from formdesk.app.core.security import require_operator
from formdesk.app.schemas.response import ResponseOut, UpdateAnswersIn
from formdesk.app.services import forms as forms_service
from formdesk.app.services import submission as submission_service
from formdesk.app.services.export import ResponseExporter, export_filename
from formdesk.app.services.storage import get_storage
from formdesk.db.session import get_db

router = APIRouter(prefix="/api/forms/{form_id}", tags=["responses"])


def _attachment(content, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/responses", response_model=List[ResponseOut])
def list_responses(form_id: str, operator_id: str = Depends(require_operator), db: Session = Depends(get_db)):
    """List responses of a form, newest first."""
    form = forms_service.get_form(db, operator_id, form_id)
    return [submission_service.to_response_out(r) for r in submission_service.list_responses(db, form.form_id)]


@router.patch("/responses/{response_id}", response_model=ResponseOut)
def update_response(form_id: str, response_id: str, payload: UpdateAnswersIn,
                    operator_id: str = Depends(require_operator), db: Session = Depends(get_db)):
    """Edit answers of a stored response.

    Errors:
        404: Form or response not found.
        422: An edited answer is invalid for its field.
    """
    form = forms_service.get_form(db, operator_id, form_id)
    response = submission_service.update_response_answers(db, form, response_id, payload.answers)
    return submission_service.to_response_out(response)


@router.delete("/responses/{response_id}")
def delete_response(form_id: str, response_id: str, operator_id: str = Depends(require_operator),
                    db: Session = Depends(get_db)):
    form = forms_service.get_form(db, operator_id, form_id)
    submission_service.delete_response(db, form.form_id, response_id)
    return {"ok": True}


@router.get("/export/csv")
def export_csv(form_id: str, operator_id: str = Depends(require_operator), db: Session = Depends(get_db)):
    form = forms_service.get_form(db, operator_id, form_id)
    exporter = ResponseExporter(form, submission_service.list_responses(db, form.form_id))
    return _attachment(exporter.to_csv(), "text/csv", export_filename(form, "responses.csv"))


@router.get("/export/xlsx")
def export_xlsx(form_id: str, operator_id: str = Depends(require_operator), db: Session = Depends(get_db)):
    form = forms_service.get_form(db, operator_id, form_id)
    exporter = ResponseExporter(form, submission_service.list_responses(db, form.form_id))
    return _attachment(
        exporter.to_xlsx(),
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        export_filename(form, "responses.xlsx"),
    )


@router.get("/export/images")
async def export_images(form_id: str, operator_id: str = Depends(require_operator), db: Session = Depends(get_db)):
    """Download every uploaded image as a ZIP archive.

    Errors:
        404: No image fields, or no image could be fetched (`export_no_content`).
    """
    form = forms_service.get_form(db, operator_id, form_id)
    exporter = ResponseExporter(form, submission_service.list_responses(db, form.form_id))
    data, collected, skipped = await exporter.to_image_archive(get_storage())
    response = _attachment(data, "application/zip", export_filename(form, "images.zip"))
    response.headers["X-Images-Collected"] = str(collected)
    response.headers["X-Images-Skipped"] = str(skipped)
    return response
