"""Form schema operations.

A form and its ordered field set are treated as one unit: editing a form
replaces every field definition in a single transaction, there is no per-field
patching and no versioning.
"""
# app/services/forms.py
from typing import Iterable, List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from formdesk.app.core.exceptions import FormNotFound, InvalidSchema
from formdesk.app.core.logging import get_logs_writer_logger
from formdesk.app.schemas.form import FieldIn, FieldOut, FormOut, FormSummaryOut
from formdesk.app.services.field_types import describe
from formdesk.app.services.links import form_share_url
from formdesk.db.models import FieldKind, Form, FormField

logger = get_logs_writer_logger()


def _normalize_title(title: str | None) -> str:
    title = (title or "").strip()
    if not title:
        raise InvalidSchema("Form title must not be empty")
    return title


def _build_fields(fields: Iterable[FieldIn]) -> List[FormField]:
    """Check field definitions and turn them into rows with unique positions.

    Fields are ordered by their requested `order` (input position breaks ties
    and places fields without one) and renumbered from zero.
    """
    fields = list(fields)
    if not fields:
        raise InvalidSchema("A form needs at least one field")

    problems = []
    for i, f in enumerate(fields):
        if not f.label or not f.label.strip():
            problems.append(f"field #{i + 1}: label is empty")
        if f.kind == FieldKind.select and not [o for o in (f.options or []) if o.strip()]:
            problems.append(f"field #{i + 1}: select field has no options")
    if problems:
        raise InvalidSchema("; ".join(problems))

    indexed = sorted(
        enumerate(fields),
        key=lambda pair: (pair[1].order if pair[1].order is not None else pair[0], pair[0]),
    )
    rows = []
    for position, (_, f) in enumerate(indexed):
        options = None
        if f.kind == FieldKind.select:
            options = [o.strip() for o in f.options if o.strip()]
        rows.append(FormField(
            label=f.label.strip(),
            kind=f.kind,
            is_required=f.required,
            position=position,
            options=options,
        ))
    return rows


def _load(db: Session, form_id: str) -> Form | None:
    # form and fields in one SELECT, so a concurrent replace is seen whole or not at all
    return db.execute(
        select(Form).options(joinedload(Form.fields)).where(Form.form_id == form_id)
    ).unique().scalar_one_or_none()


def get_form(db: Session, owner_id: str, form_id: str) -> Form:
    form = _load(db, form_id)
    if not form or form.owner_id != owner_id:
        raise FormNotFound(form_id)
    return form


def get_active_form(db: Session, form_id: str) -> Form:
    """Load a form for respondents. Missing and inactive forms look the same."""
    form = _load(db, form_id)
    if not form or not form.is_active:
        raise FormNotFound(form_id)
    return form


def list_forms(db: Session, owner_id: str) -> List[Form]:
    return list(db.scalars(
        select(Form)
        .where(Form.owner_id == owner_id)
        .order_by(Form.created_at.desc(), Form.form_id)
    ).all())


def create_form(db: Session, owner_id: str, title: str, description: str | None,
                fields: Iterable[FieldIn]) -> Form:
    form = Form(
        owner_id=owner_id,
        title=_normalize_title(title),
        description=description,
        is_active=True,
    )
    form.fields = _build_fields(fields)
    db.add(form)
    db.commit()
    logger.info("Form %s created by %s with %d field(s)", form.form_id, owner_id, len(form.fields))
    return get_form(db, owner_id, form.form_id)


def replace_form(db: Session, owner_id: str, form_id: str, title: str, description: str | None,
                 fields: Iterable[FieldIn]) -> Form:
    """Replace title, description and the whole field set of a form.

    Old field definitions are deleted and new ones inserted in one
    transaction. Existing answers keep their (now orphaned) field ids.
    """
    title = _normalize_title(title)
    new_fields = _build_fields(fields)
    form = get_form(db, owner_id, form_id)

    try:
        form.title = title
        form.description = description
        form.fields.clear()
        db.flush()  # old rows go before new positions are inserted
        form.fields.extend(new_fields)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    logger.info("Form %s replaced with %d field(s)", form_id, len(new_fields))
    return get_form(db, owner_id, form_id)


def set_active(db: Session, owner_id: str, form_id: str, active: bool) -> Form:
    form = get_form(db, owner_id, form_id)
    form.is_active = active
    db.commit()
    return get_form(db, owner_id, form_id)


def delete_form(db: Session, owner_id: str, form_id: str) -> None:
    form = get_form(db, owner_id, form_id)
    db.delete(form)
    db.commit()
    logger.info("Form %s deleted with its responses", form_id)


def to_field_out(field: FormField) -> FieldOut:
    return FieldOut(
        id=field.field_id,
        label=field.label,
        kind=field.kind,
        required=field.is_required,
        order=field.position,
        options=field.options if field.kind == FieldKind.select else None,
        render_hint=describe(field.kind).render_hint,
    )


def to_form_out(form: Form) -> FormOut:
    return FormOut(
        id=form.form_id,
        title=form.title,
        description=form.description,
        active=form.is_active,
        created_at=form.created_at,
        share_url=form_share_url(form.form_id),
        fields=[to_field_out(f) for f in form.fields],
    )


def to_form_summary(form: Form) -> FormSummaryOut:
    return FormSummaryOut(
        id=form.form_id,
        title=form.title,
        description=form.description,
        active=form.is_active,
        created_at=form.created_at,
        share_url=form_share_url(form.form_id),
    )
