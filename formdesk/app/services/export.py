# app/services/export.py
import csv
import io
import re
import zipfile
from datetime import datetime, timezone
from typing import List, Sequence, Tuple

import pandas as pd

from formdesk.app.core.config import settings
from formdesk.app.core.exceptions import AssetNotFound, ExportNoContent
from formdesk.app.core.logging import get_logs_writer_logger
from formdesk.app.services.field_types import is_asset
from formdesk.db.models import Form, FormResponse

logger = get_logs_writer_logger()

SUBMITTED_AT_HEADER = "Submitted At"
SHEET_NAME = "Responses"

_UNSAFE_CHARS = re.compile(r"[^a-z0-9]", re.IGNORECASE)


def sanitize_label(label: str) -> str:
    return _UNSAFE_CHARS.sub("_", label)


def _as_utc(ts: datetime) -> datetime:
    # SQLite hands back naive datetimes; they are stored in UTC
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def export_filename(form: Form, suffix: str) -> str:
    """Download name such as `Customer_survey-responses.csv`."""
    base = sanitize_label(form.title.strip()) if form.title and form.title.strip() else "form"
    return f"{base}-{suffix}"


class ResponseExporter:
    """Exports the collected responses of one form.

    Works from the live field set of the form: columns follow field order at
    export time, and answers for fields that no longer exist are not exported.
    """

    def __init__(self, form: Form, responses: Sequence[FormResponse]):
        self.form = form
        self.fields = sorted(form.fields, key=lambda f: f.position)
        # newest first, ties by response id ascending (same order as list_responses)
        self.responses = sorted(
            sorted(responses, key=lambda r: r.response_id),
            key=lambda r: _as_utc(r.submitted_at),
            reverse=True,
        )

    def to_table(self, missing: str = "") -> List[List[str]]:
        """
        Build the export grid.

        :param missing: Cell value for fields a response did not answer
        :return: Header row followed by one row per response
        """
        rows = [[SUBMITTED_AT_HEADER] + [f.label for f in self.fields]]
        for response in self.responses:
            answers = response.answer_map()
            rows.append(
                [_as_utc(response.submitted_at).strftime(settings.EXPORT_TIMESTAMP_FORMAT)]
                + [answers.get(f.field_id) or missing for f in self.fields]
            )
        return rows

    def to_csv(self) -> str:
        """Every cell quoted, embedded quotes doubled, rows separated by newline."""
        output = io.StringIO()
        writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerows(self.to_table())
        return output.getvalue()

    def to_xlsx(self) -> bytes:
        table = self.to_table()
        df = pd.DataFrame(table[1:], columns=table[0], dtype=str)
        output = io.BytesIO()
        with pd.ExcelWriter(output, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name=SHEET_NAME, index=False)
        return output.getvalue()

    async def to_image_archive(self, storage) -> Tuple[bytes, int, int]:
        """
        Bundle every uploaded image into a ZIP archive.

        A failed fetch skips that image and never aborts the archive.

        :return: (zip bytes, images collected, images skipped)
        :raises ExportNoContent: when no image could be collected
        """
        image_fields = [f for f in self.fields if is_asset(f.kind)]
        if not image_fields:
            raise ExportNoContent("This form has no image fields")

        output = io.BytesIO()
        collected, skipped = 0, 0
        with zipfile.ZipFile(output, "w", zipfile.ZIP_DEFLATED) as archive:
            for response in self.responses:
                answers = response.answer_map()
                day = _as_utc(response.submitted_at).date().isoformat()
                for f in image_fields:
                    uri = (answers.get(f.field_id) or "").strip()
                    if not uri:
                        continue
                    try:
                        data = await storage.get(uri)
                    except (AssetNotFound, OSError) as e:
                        skipped += 1
                        logger.warning("Skipping image %s of response %s: %r", uri, response.response_id, e)
                        continue
                    archive.writestr(f"{day}_{sanitize_label(f.label)}_{collected}.jpg", data)
                    collected += 1

        if collected == 0:
            raise ExportNoContent("No images found in responses")
        logger.info("Image archive for form %s: %d collected, %d skipped",
                    self.form.form_id, collected, skipped)
        return output.getvalue(), collected, skipped


def export_responses_to_csv(form: Form, responses: Sequence[FormResponse]) -> str:
    """Export form responses to a CSV string"""
    return ResponseExporter(form, responses).to_csv()


def export_responses_to_xlsx(form: Form, responses: Sequence[FormResponse]) -> bytes:
    """Export form responses to an XLSX workbook"""
    return ResponseExporter(form, responses).to_xlsx()


async def export_images_to_zip(form: Form, responses: Sequence[FormResponse], storage) -> Tuple[bytes, int, int]:
    return await ResponseExporter(form, responses).to_image_archive(storage)
