import asyncio
import io
import zipfile
from datetime import datetime, timezone

import pandas as pd
import pytest

from formdesk.app.core.exceptions import ExportNoContent
from formdesk.app.services.export import (
    ResponseExporter,
    export_filename,
    export_images_to_zip,
    export_responses_to_csv,
    export_responses_to_xlsx,
    sanitize_label,
)
from formdesk.app.services.submission import list_responses
from formdesk.db.models import FormResponse, ResponseAnswer
from tests.conftest import field_id


def _response(db, form, submitted_at, answers):
    response = FormResponse(form_id=form.form_id, submitted_at=submitted_at)
    response.answers = [ResponseAnswer(field_id=fid, answer=value) for fid, value in answers.items()]
    db.add(response)
    db.commit()
    return response


@pytest.fixture
def color_responses(db, color_form):
    name_id, color_id = field_id(color_form, "Name"), field_id(color_form, "Color")
    return [
        _response(db, color_form, datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc), {name_id: "Ann", color_id: "Red"}),
        _response(db, color_form, datetime(2024, 3, 2, 10, 0, tzinfo=timezone.utc), {name_id: 'Bo "B" Smith'}),
    ]


class TestTable:
    def test_single_response(self, db, color_form):
        response = _response(db, color_form, datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc), {
            field_id(color_form, "Name"): "Ann",
            field_id(color_form, "Color"): "Red",
        })
        table = ResponseExporter(color_form, [response]).to_table()
        assert table == [["Submitted At", "Name", "Color"], ["2024-03-01 09:30:00", "Ann", "Red"]]

    def test_newest_first_and_blank_cells(self, color_form, color_responses):
        table = ResponseExporter(color_form, color_responses).to_table()
        assert table[1] == ["2024-03-02 10:00:00", 'Bo "B" Smith', ""]
        assert table[2][1:] == ["Ann", "Red"]

    def test_ties_follow_response_listing(self, db, color_form):
        ts = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)
        name_id = field_id(color_form, "Name")
        for name in ("Ann", "Bob", "Cid"):
            _response(db, color_form, ts, {name_id: name})
        listed = list_responses(db, color_form.form_id)

        table = ResponseExporter(color_form, list(reversed(listed))).to_table()
        assert [row[1] for row in table[1:]] == [r.answer_map()[name_id] for r in listed]

    def test_columns_follow_field_order(self, db, color_form, color_responses):
        color_form.fields[0].position, color_form.fields[1].position = 1, 0
        table = ResponseExporter(color_form, color_responses).to_table()
        assert table[0] == ["Submitted At", "Color", "Name"]

    def test_answers_of_removed_fields_are_dropped(self, db, color_form):
        response = _response(db, color_form, datetime(2024, 1, 1, tzinfo=timezone.utc), {
            field_id(color_form, "Name"): "Ann",
            "old-field": "stale",
        })
        table = ResponseExporter(color_form, [response]).to_table()
        assert table[1] == ["2024-01-01 00:00:00", "Ann", ""]

    def test_no_responses(self, color_form):
        assert ResponseExporter(color_form, []).to_table() == [["Submitted At", "Name", "Color"]]


class TestCsv:
    def test_quoting(self, color_form, color_responses):
        csv_text = export_responses_to_csv(color_form, color_responses)
        assert csv_text.splitlines() == [
            '"Submitted At","Name","Color"',
            '"2024-03-02 10:00:00","Bo ""B"" Smith",""',
            '"2024-03-01 09:30:00","Ann","Red"',
        ]
        assert csv_text.endswith("\n")

    def test_idempotent(self, color_form, color_responses):
        exporter = ResponseExporter(color_form, color_responses)
        assert exporter.to_csv() == exporter.to_csv()

    def test_reads_back_with_pandas(self, color_form, color_responses):
        df = pd.read_csv(io.StringIO(export_responses_to_csv(color_form, color_responses)), dtype=str)
        assert df.loc[0, "Name"] == 'Bo "B" Smith'


class TestXlsx:
    def test_workbook(self, color_form, color_responses):
        data = export_responses_to_xlsx(color_form, color_responses)
        df = pd.read_excel(io.BytesIO(data), sheet_name="Responses", dtype=str)
        assert list(df.columns) == ["Submitted At", "Name", "Color"]
        assert df.loc[1, "Name"] == "Ann"
        assert df.loc[1, "Color"] == "Red"


class TestImageArchive:
    def _names(self, data):
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            return archive.namelist()

    def test_collects_images(self, db, storage, photo_form):
        storage.objects["mem://a"] = b"A"
        storage.objects["mem://b"] = b"B"
        storage.objects["mem://c"] = b"C"
        front_id, back_id = field_id(photo_form, "Front view"), field_id(photo_form, "Back view")
        responses = [
            _response(db, photo_form, datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc), {front_id: "mem://a", back_id: "mem://b"}),
            _response(db, photo_form, datetime(2024, 5, 2, 8, 0, tzinfo=timezone.utc), {front_id: "mem://c"}),
        ]
        data, collected, skipped = asyncio.run(export_images_to_zip(photo_form, responses, storage))

        assert (collected, skipped) == (3, 0)
        assert self._names(data) == [
            "2024-05-02_Front_view_0.jpg",
            "2024-05-01_Front_view_1.jpg",
            "2024-05-01_Back_view_2.jpg",
        ]
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            assert archive.read("2024-05-02_Front_view_0.jpg") == b"C"

    def test_failed_fetch_is_skipped(self, db, storage, photo_form):
        storage.objects["mem://ok"] = b"OK"
        front_id = field_id(photo_form, "Front view")
        responses = [
            _response(db, photo_form, datetime(2024, 5, 1, tzinfo=timezone.utc), {front_id: "mem://ok"}),
            _response(db, photo_form, datetime(2024, 5, 2, tzinfo=timezone.utc), {front_id: "mem://gone"}),
        ]
        data, collected, skipped = asyncio.run(export_images_to_zip(photo_form, responses, storage))

        assert (collected, skipped) == (1, 1)
        assert self._names(data) == ["2024-05-01_Front_view_0.jpg"]

    def test_no_image_fields(self, storage, color_form, color_responses):
        with pytest.raises(ExportNoContent):
            asyncio.run(export_images_to_zip(color_form, color_responses, storage))

    def test_nothing_fetchable(self, db, storage, photo_form):
        front_id = field_id(photo_form, "Front view")
        responses = [_response(db, photo_form, datetime(2024, 5, 1, tzinfo=timezone.utc), {front_id: "mem://gone"})]
        with pytest.raises(ExportNoContent):
            asyncio.run(export_images_to_zip(photo_form, responses, storage))

    def test_no_responses(self, storage, photo_form):
        with pytest.raises(ExportNoContent):
            asyncio.run(export_images_to_zip(photo_form, [], storage))

    def test_malformed_uri_is_skipped(self, db, disk_storage, photo_form):
        good = asyncio.run(disk_storage.put(f"{photo_form.form_id}/front.jpg", b"FRONT"))
        response = _response(db, photo_form, datetime(2024, 5, 1, tzinfo=timezone.utc), {
            field_id(photo_form, "Front view"): good,
            field_id(photo_form, "Back view"): "https://example.com:abc/x.jpg",
        })
        data, collected, skipped = asyncio.run(export_images_to_zip(photo_form, [response], disk_storage))

        assert (collected, skipped) == (1, 1)
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            assert archive.read("2024-05-01_Front_view_0.jpg") == b"FRONT"


class TestNames:
    def test_sanitize_label(self):
        assert sanitize_label("Front view (left)") == "Front_view__left_"
        assert sanitize_label("Ärger") == "_rger"

    def test_export_filename(self, color_form):
        assert export_filename(color_form, "responses.csv") == "Favourite_colours-responses.csv"
