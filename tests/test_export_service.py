import io
import zipfile

import openpyxl

from core.constants import EXPORT_COLUMNS, EXPORT_CONTENT_TYPE
from core.models import State
from core.repositories import IssueRepository, SearchCondition
from core.services.export_service import (
    encode_content_disposition,
    export_issues,
    sniff_content_type,
)


def test_workbook_has_header_and_one_row_per_issue(test_session, world, make_issue):
    make_issue(world.project, world.alice, title="first", labels=[world.bug, world.urgent])
    make_issue(
        world.project,
        world.bob,
        title="second",
        state=State.CLOSED,
        assignee=world.alice,
        milestone=world.milestone,
        comments=2,
    )
    issues = IssueRepository(test_session).list_all(world.project, SearchCondition(state="all"))

    export = export_issues(issues, world.project.name)

    sheet = openpyxl.load_workbook(io.BytesIO(export.content)).active
    rows = list(sheet.iter_rows(values_only=True))
    assert list(rows[0]) == [header for header, _ in EXPORT_COLUMNS]
    assert len(rows) == 3

    by_title = {row[2]: row for row in rows[1:]}
    assert by_title["first"][1] == "open"
    assert set(by_title["first"][6].split(", ")) == {"type bug", "priority urgent"}
    assert by_title["second"][1] == "closed"
    assert by_title["second"][3] == "bob"
    assert by_title["second"][4] == "alice"
    assert by_title["second"][5] == "v1.0"
    assert by_title["second"][7] == 2


def test_filename_and_content_type(test_session, world):
    export = export_issues([], "widgets")

    assert export.filename == "widgets_issues.xlsx"
    assert export.content.startswith(b"PK")
    assert export.content_type == EXPORT_CONTENT_TYPE
    assert export.content_disposition == (
        "attachment; filename=\"widgets_issues.xlsx\"; filename*=UTF-8''widgets_issues.xlsx"
    )


def test_non_ascii_filename_is_percent_encoded():
    header = encode_content_disposition("프로젝트_issues.xlsx")

    assert header.startswith('filename="')
    assert "filename*=UTF-8''%ED%94%84" in header
    assert header.endswith("_issues.xlsx")
    header.encode("latin-1")


def test_quotes_are_stripped_from_ascii_fallback():
    header = encode_content_disposition('a"b.xlsx')

    assert header.startswith('filename="ab.xlsx";')
    assert "filename*=UTF-8''a%22b.xlsx" in header


def test_sniffing_tells_workbooks_from_other_bytes():
    plain_zip = io.BytesIO()
    with zipfile.ZipFile(plain_zip, "w") as archive:
        archive.writestr("notes.txt", "hello")

    assert sniff_content_type(export_issues([], "widgets").content) == EXPORT_CONTENT_TYPE
    assert sniff_content_type(plain_zip.getvalue()) == "application/zip"
    assert sniff_content_type(b"PK\x03\x04 truncated") == "application/octet-stream"
    assert sniff_content_type(b"id,title\n1,x\n") == "application/octet-stream"
