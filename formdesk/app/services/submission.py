"""Submission pipeline and operator-side response maintenance.

A submission moves through
collecting -> validating -> uploading_assets -> persisting -> completed,
ending in `rejected` when validation fails or `failed` when an upload or the
database write fails. All per-submission state lives in a `SubmissionContext`.
"""
# app/services/submission.py
import asyncio
import enum
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from formdesk.app.core.config import settings
from formdesk.app.core.exceptions import (
    PersistFailure,
    ResponseNotFound,
    UploadFailure,
    ValidationError,
)
from formdesk.app.core.logging import get_logs_writer_logger
from formdesk.app.schemas.response import ResponseOut
from formdesk.app.services.field_types import FieldError, UploadedAsset, is_asset, validate
from formdesk.app.services.forms import get_active_form
from formdesk.db.models import Form, FormResponse, ResponseAnswer

logger = get_logs_writer_logger()


class SubmissionState(str, enum.Enum):
    collecting = "collecting"
    validating = "validating"
    uploading_assets = "uploading_assets"
    persisting = "persisting"
    completed = "completed"
    rejected = "rejected"
    failed = "failed"


@dataclass
class SubmissionContext:
    form_id: str
    raw_answers: Dict[str, Any]
    state: SubmissionState = SubmissionState.collecting
    answers: Dict[str, Any] = field(default_factory=dict)
    errors: List[FieldError] = field(default_factory=list)
    uploaded: Dict[str, str] = field(default_factory=dict)
    response_id: Optional[str] = None


def _validate_answers(form: Form, raw_answers: Dict[str, Any]) -> tuple[Dict[str, Any], List[FieldError]]:
    """Run every field of the form through the registry.

    Keys that are not field ids of this form are dropped. Asset fields only
    accept an attached file here, never a URI typed in by the respondent.
    """
    values, errors = {}, []
    for f in form.fields:
        raw = raw_answers.get(f.field_id)
        if is_asset(f.kind) and not isinstance(raw, UploadedAsset):
            raw = None
        check = validate(f.kind, raw, f.is_required)
        if not check.ok:
            errors.append(FieldError(field_id=f.field_id, label=f.label, code=check.error))
        elif check.value is not None:
            values[f.field_id] = check.value
    return values, errors


async def _upload_assets(ctx: SubmissionContext, storage) -> None:
    pending = {fid: v for fid, v in ctx.answers.items() if isinstance(v, UploadedAsset)}
    if not pending:
        return
    ctx.state = SubmissionState.uploading_assets
    semaphore = asyncio.Semaphore(max(1, settings.UPLOAD_CONCURRENCY))

    async def _one(field_id: str, asset: UploadedAsset) -> None:
        async with semaphore:
            path = f"{ctx.form_id}/{uuid.uuid4().hex}.{asset.extension}"
            ctx.uploaded[field_id] = await storage.put(path, asset.data)

    results = await asyncio.gather(
        *(_one(fid, asset) for fid, asset in pending.items()),
        return_exceptions=True,
    )
    failures = [r for r in results if isinstance(r, BaseException)]
    if failures:
        ctx.state = SubmissionState.failed
        for exc in failures:
            logger.error("Asset upload for form %s failed: %r", ctx.form_id, exc)
        # uploads that did succeed are left in storage
        raise UploadFailure("Could not store attached files") from failures[0]
    ctx.answers.update(ctx.uploaded)


def _persist(ctx: SubmissionContext, db: Session) -> None:
    ctx.state = SubmissionState.persisting
    response = FormResponse(form_id=ctx.form_id)
    response.answers = [
        ResponseAnswer(field_id=fid, answer=str(value)) for fid, value in ctx.answers.items()
    ]
    try:
        db.add(response)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        ctx.state = SubmissionState.failed
        logger.exception("Persisting response for form %s failed", ctx.form_id)
        raise PersistFailure("Could not store the response") from e
    ctx.response_id = response.response_id


async def process_submission(ctx: SubmissionContext, db: Session, storage) -> str:
    """Drive one submission to completion and return the new response id.

    Raises:
        FormNotFound: the form is missing or inactive.
        ValidationError: one or more answers are invalid (all are listed).
        UploadFailure: an attached file could not be stored; nothing is persisted.
        PersistFailure: the database write failed; nothing is persisted.
    """
    form = get_active_form(db, ctx.form_id)

    ctx.state = SubmissionState.validating
    ctx.answers, ctx.errors = _validate_answers(form, ctx.raw_answers)
    if ctx.errors:
        ctx.state = SubmissionState.rejected
        logger.info("Submission to form %s rejected: %s", ctx.form_id,
                    ", ".join(f"{e.field_id}:{e.code}" for e in ctx.errors))
        raise ValidationError(ctx.errors)

    await _upload_assets(ctx, storage)
    _persist(ctx, db)

    ctx.state = SubmissionState.completed
    logger.info("Response %s stored for form %s", ctx.response_id, ctx.form_id)
    return ctx.response_id


async def submit(db: Session, storage, form_id: str, answers: Dict[str, Any]) -> str:
    ctx = SubmissionContext(form_id=form_id, raw_answers=dict(answers))
    return await process_submission(ctx, db, storage)


def list_responses(db: Session, form_id: str) -> List[FormResponse]:
    return list(db.scalars(
        select(FormResponse)
        .options(selectinload(FormResponse.answers))
        .where(FormResponse.form_id == form_id)
        .order_by(FormResponse.submitted_at.desc(), FormResponse.response_id)
    ).all())


def _get_response(db: Session, form_id: str, response_id: str) -> FormResponse:
    response = db.execute(
        select(FormResponse)
        .options(selectinload(FormResponse.answers))
        .where(FormResponse.response_id == response_id, FormResponse.form_id == form_id)
    ).scalar_one_or_none()
    if not response:
        raise ResponseNotFound(response_id)
    return response


def update_response_answers(db: Session, form: Form, response_id: str, answers: Dict[str, str]) -> FormResponse:
    """Apply operator edits to a stored response.

    Only the supplied fields are validated and touched. Image fields take a URI
    string. A blank value on an optional field removes the answer.
    """
    response = _get_response(db, form.form_id, response_id)
    fields = {f.field_id: f for f in form.fields}

    errors, changes = [], {}
    for field_id, raw in answers.items():
        f = fields.get(field_id)
        if f is None:
            continue
        check = validate(f.kind, raw, f.is_required)
        if not check.ok:
            errors.append(FieldError(field_id=f.field_id, label=f.label, code=check.error))
        else:
            changes[field_id] = check.value
    if errors:
        raise ValidationError(errors)

    existing = {a.field_id: a for a in response.answers}
    for field_id, value in changes.items():
        row = existing.get(field_id)
        if value is None:
            if row is not None:
                response.answers.remove(row)
        elif row is not None:
            row.answer = str(value)
        else:
            response.answers.append(ResponseAnswer(field_id=field_id, answer=str(value)))

    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Updating response %s failed", response_id)
        raise PersistFailure("Could not update the response") from e
    return _get_response(db, form.form_id, response_id)


def delete_response(db: Session, form_id: str, response_id: str) -> None:
    response = _get_response(db, form_id, response_id)
    db.delete(response)
    db.commit()


def to_response_out(response: FormResponse) -> ResponseOut:
    return ResponseOut(
        id=response.response_id,
        form_id=response.form_id,
        submitted_at=response.submitted_at,
        answers=response.answer_map(),
    )
