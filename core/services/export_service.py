"""
Spreadsheet export for issue lists.

Builds an .xlsx workbook in memory with openpyxl. The response content type
is sniffed from the produced bytes rather than assumed.
"""

import io
import zipfile
from dataclasses import dataclass
from urllib.parse import quote

import openpyxl
from openpyxl.styles import Alignment, Font
from openpyxl.utils import get_column_letter

from core.constants import (
    EXPORT_COLUMNS,
    EXPORT_CONTENT_TYPE,
    EXPORT_FILE_EXTENSION,
    EXPORT_FILE_SUFFIX,
    EXPORT_SHEET_TITLE,
)
from core.logging import get_logger
from core.models import Issue

logger = get_logger("service.export")


@dataclass
class ExportFile:
    filename: str
    content: bytes
    content_type: str
    truncated: bool = False

    @property
    def content_disposition(self) -> str:
        return "attachment; " + encode_content_disposition(self.filename)


def encode_content_disposition(filename: str) -> str:
    """
    Encode a filename for the Content-Disposition header.

    Emits an ASCII ``filename`` fallback plus the RFC 5987 ``filename*``
    form so non-ASCII project names survive.
    """
    ascii_name = filename.encode("ascii", "replace").decode("ascii").replace('"', "")
    return f"filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename, safe='')}"


WORKBOOK_PART = "xl/workbook.xml"
ZIP_CONTENT_TYPE = "application/zip"
FALLBACK_CONTENT_TYPE = "application/octet-stream"


def sniff_content_type(content: bytes) -> str:
    """Spreadsheet when the zip holds a workbook part, else zip or octet-stream."""
    if not content.startswith(b"PK\x03\x04"):
        return FALLBACK_CONTENT_TYPE
    try:
        with zipfile.ZipFile(io.BytesIO(content)) as archive:
            names = set(archive.namelist())
    except zipfile.BadZipFile:
        return FALLBACK_CONTENT_TYPE
    return EXPORT_CONTENT_TYPE if WORKBOOK_PART in names else ZIP_CONTENT_TYPE


def _row_for(issue: Issue) -> list:
    data = issue.to_dict()
    return [
        data["id"],
        data["state"] or "",
        data["title"],
        data["author_login_id"] or "",
        data["assignee"] or "",
        data["milestone"] or "",
        ", ".join(data["labels"]),
        data["num_of_comments"] or 0,
        issue.created_at.strftime("%Y-%m-%d %H:%M") if issue.created_at else "",
    ]


def write_issues_workbook(issues: list[Issue]) -> bytes:
    """Render issues into an .xlsx document and return its bytes."""
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = EXPORT_SHEET_TITLE

    for col, (header, width) in enumerate(EXPORT_COLUMNS, 1):
        cell = ws.cell(row=1, column=col, value=header)
        cell.font = Font(bold=True)
        cell.alignment = Alignment(horizontal="center")
        ws.column_dimensions[get_column_letter(col)].width = width

    for row_idx, issue in enumerate(issues, 2):
        for col, value in enumerate(_row_for(issue), 1):
            ws.cell(row=row_idx, column=col, value=value)

    ws.freeze_panes = "A2"

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def export_issues(issues: list[Issue], project_name: str) -> ExportFile:
    """Build the downloadable spreadsheet for a project's issue list."""
    content = write_issues_workbook(issues)
    content_type = sniff_content_type(content)
    filename = f"{project_name}{EXPORT_FILE_SUFFIX}{EXPORT_FILE_EXTENSION}"

    logger.info(
        "issues_exported",
        project=project_name,
        rows=len(issues),
        size_bytes=len(content),
        content_type=content_type,
    )
    return ExportFile(filename=filename, content=content, content_type=content_type)


__all__ = [
    "ExportFile",
    "encode_content_disposition",
    "export_issues",
    "sniff_content_type",
    "write_issues_workbook",
]
