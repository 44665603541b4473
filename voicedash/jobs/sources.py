"""Content sources for TTS submissions.

Responsibilities:
- Turn inline text, line-delimited text files, and spreadsheets into ordered
  text segments.
- Report character and row counts shown in job summaries.

Notes:
- Spreadsheets contribute only the first column (column A) of the active sheet.
- Only `.xlsx` workbooks are readable; legacy `.xls` files are rejected.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from ..errors import ValidationError
from ..models.datatypes import SOURCE_EXCEL, SOURCE_TEXT, SOURCE_TXT
from ..parsing import normalize_optional_string


TXT_SUFFIXES = frozenset({".txt"})
SPREADSHEET_SUFFIXES = frozenset({".xlsx", ".xlsm"})
LEGACY_SPREADSHEET_SUFFIXES = frozenset({".xls"})


@dataclass(frozen=True, slots=True)
class ContentSource:
    """Ordered text segments loaded for one submission.

    Attributes:
        kind: One of `SOURCE_KINDS`.
        segments: Non-blank text segments in source order.
        origin: File path for file sources, `None` for inline text.
    """

    kind: str
    segments: tuple[str, ...]
    origin: Path | None = None

    @property
    def character_count(self) -> int:
        """Return the total characters across segments."""

        return sum(len(segment) for segment in self.segments)

    @property
    def row_count(self) -> int | None:
        """Return the number of rows for file sources."""

        if self.kind == SOURCE_TEXT:
            return None
        return len(self.segments)


def load_text_source(text: str) -> ContentSource:
    """Wrap inline text as a single-segment source."""

    normalized = normalize_optional_string(text)
    if normalized is None:
        raise ValidationError("Please enter text to convert.", field="text")
    return ContentSource(kind=SOURCE_TEXT, segments=(normalized,))


def _require_file(path: Path, allowed_suffixes: frozenset[str], field: str) -> None:
    """Validate that a source file exists and has a supported extension."""

    if not path.is_file():
        raise ValidationError(f"Source file not found: `{path}`.", field=field)
    if path.suffix.lower() not in allowed_suffixes:
        supported = ", ".join(sorted(allowed_suffixes))
        raise ValidationError(
            f"Unsupported source file type `{path.suffix or '(none)'}`.",
            field=field,
            hint=f"Use one of: {supported}.",
        )


def load_line_file(path: Path) -> ContentSource:
    """Load a text file where each non-blank line is processed separately."""

    _require_file(path, TXT_SUFFIXES, "file")
    try:
        raw_text = path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ValidationError(
            f"Source file `{path}` is not valid UTF-8 text.",
            field="file",
        ) from exc
    segments = tuple(
        line for line in map(normalize_optional_string, raw_text.splitlines()) if line
    )
    if not segments:
        raise ValidationError(f"Source file `{path}` contains no text lines.", field="file")
    return ContentSource(kind=SOURCE_TXT, segments=segments, origin=path)


def load_spreadsheet_first_column(path: Path) -> ContentSource:
    """Load non-blank values from column A of a workbook's active sheet."""

    if path.suffix.lower() in LEGACY_SPREADSHEET_SUFFIXES:
        raise ValidationError(
            f"Legacy spreadsheet `{path.name}` is not supported.",
            field="file",
            hint="Save the workbook as `.xlsx` and retry.",
        )
    _require_file(path, SPREADSHEET_SUFFIXES, "file")

    try:
        workbook = load_workbook(path, read_only=True, data_only=True)
    except (InvalidFileException, BadZipFile, OSError, KeyError, ValueError) as exc:
        raise ValidationError(
            f"Spreadsheet `{path}` could not be read: {exc}",
            field="file",
        ) from exc

    try:
        sheet = workbook.active
        segments = tuple(
            value
            for value in (
                normalize_optional_string(row[0]) if row else None
                for row in sheet.iter_rows(min_col=1, max_col=1, values_only=True)
            )
            if value
        )
    finally:
        workbook.close()

    if not segments:
        raise ValidationError(f"Spreadsheet `{path}` has no values in column A.", field="file")
    return ContentSource(kind=SOURCE_EXCEL, segments=segments, origin=path)


def load_content_source(kind: str, *, text: str | None, path: Path | None) -> ContentSource:
    """Load a content source by kind."""

    if kind == SOURCE_TEXT:
        return load_text_source(text or "")
    if path is None:
        raise ValidationError("Please choose a source file.", field="file")
    if kind == SOURCE_TXT:
        return load_line_file(path)
    if kind == SOURCE_EXCEL:
        return load_spreadsheet_first_column(path)
    raise ValidationError(f"Unsupported source kind `{kind}`.", field="source")
