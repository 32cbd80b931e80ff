import datetime
import logging
import zipfile
from pathlib import Path
from typing import Any, Dict, Iterable, List, Union

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import InvalidFileException

from core.errors import FormatError
from core.utils import format_date_vn, to_iso_date
from models.member import PartyMember
from services.normalizer import normalize_batch

logger = logging.getLogger(__name__)

# Old binary Excel format, not readable by openpyxl
LEGACY_SUFFIXES = {".xls"}

# Column header (as typed by users in the template) -> member field
HEADER_MAPPING = {
    'Họ và tên': 'fullName',
    'Ngày sinh': 'dateOfBirth',
    'Giới tính': 'gender',
    'Dân tộc': 'ethnicity',
    'Tôn giáo': 'religion',
    'Mã định danh': 'idCode',
    'Trình độ học vấn': 'educationLevel',
    'Chức vụ': 'position',
    'Trình độ lý luận chính trị': 'politicalTheoryLevel',
    'Số thẻ đảng': 'partyCardNumber',
    'Ngày kết nạp': 'admissionDate',
    'Ngày chính thức': 'officialDate',
    'Các lớp bồi dưỡng': 'trainingCourses',
}

DATE_FIELDS = {'dateOfBirth', 'admissionDate', 'officialDate'}

# Template column widths (characters), same order as HEADER_MAPPING
TEMPLATE_WIDTHS = [25, 15, 10, 15, 15, 15, 20, 20, 25, 15, 15, 15, 30]

ROSTER_SHEET = "DanhSachDangVien"
TEMPLATE_SHEET = "Dữ liệu Đảng viên"


def _cell_text(value: Any) -> str:
    """Spreadsheet cell -> text. Whole floats (e.g. card numbers typed as numbers) lose the '.0'."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime.date, datetime.datetime)):
        return to_iso_date(value)
    return str(value).strip()


def row_to_record(row: Dict[str, Any]) -> Dict[str, Any]:
    """
    Maps one spreadsheet row (header -> cell value) onto member fields.
    Unknown columns are ignored. The result still needs normalization.
    """
    record: Dict[str, Any] = {}
    for header, key in HEADER_MAPPING.items():
        if header not in row or row[header] is None:
            continue
        value = row[header]
        if key in DATE_FIELDS:
            record[key] = to_iso_date(value)
        elif key == 'trainingCourses':
            text = _cell_text(value)
            record[key] = [{'name': text, 'date': ''}] if text else []
        else:
            record[key] = _cell_text(value)
    return record


def read_rows(path: Union[str, Path]) -> List[Dict[str, Any]]:
    """
    Reads the first sheet of a workbook into a list of dicts keyed by the header row.

    Raises:
        FormatError: If the file is missing or is not a readable .xlsx workbook.
    """
    if Path(path).suffix.lower() in LEGACY_SUFFIXES:
        raise FormatError("Định dạng bảng tính không được hỗ trợ (unsupported spreadsheet format: .xls). "
                          "Vui lòng lưu lại file dưới dạng .xlsx.")
    try:
        wb = load_workbook(str(path), read_only=True, data_only=True)
    except (OSError, InvalidFileException, zipfile.BadZipFile, KeyError) as e:
        raise FormatError(f"Không đọc được file Excel: {e}") from e

    try:
        ws = wb.worksheets[0]
        rows = ws.iter_rows(values_only=True)
        header = next(rows, None)
        if not header:
            return []
        names = [_cell_text(h) for h in header]

        result = []
        for values in rows:
            if values is None or all(v is None or v == "" for v in values):
                continue
            result.append({name: v for name, v in zip(names, values) if name})
        return result
    finally:
        wb.close()


def import_excel(path: Union[str, Path]) -> List[PartyMember]:
    """
    Imports members from a spreadsheet built on the import template.
    Every row gets a fresh ID; rows without a name or card number are dropped.

    Returns:
        List[PartyMember]: The valid members (possibly empty).

    Raises:
        FormatError: If the workbook cannot be read.
    """
    rows = read_rows(path)
    members, rejected = normalize_batch(row_to_record(r) for r in rows)
    logger.info("Excel import %s: %d valid row(s), %d dropped", Path(path).name, len(members), rejected)
    return members


def format_courses(courses: Iterable[Any]) -> str:
    """'Lớp A (01/02/2020); Lớp B' style rendering for reports."""
    parts = []
    for c in courses or []:
        name = c.name if hasattr(c, "name") else c.get("name", "")
        date = c.date if hasattr(c, "date") else c.get("date", "")
        shown = format_date_vn(date)
        parts.append(f"{name} ({shown})" if shown else name)
    return "; ".join(parts)


def export_excel(path: Union[str, Path], members: Iterable[PartyMember]) -> str:
    """
    Writes the roster as a spreadsheet (one row per member, STT first).
    Returns the saved path.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = ROSTER_SHEET

    ws.append(['STT'] + list(HEADER_MAPPING.keys()))
    for cell in ws[1]:
        cell.font = Font(bold=True)

    for index, m in enumerate(members, start=1):
        row = [index]
        for key in HEADER_MAPPING.values():
            if key == 'trainingCourses':
                row.append(format_courses(m.trainingCourses))
            else:
                row.append(getattr(m, key) or "")
        ws.append(row)

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(str(path))
    return str(path)


def export_template(path: Union[str, Path]) -> str:
    """Writes an empty, header-only import template. Returns the saved path."""
    wb = Workbook()
    ws = wb.active
    ws.title = TEMPLATE_SHEET
    ws.append(list(HEADER_MAPPING.keys()))

    for i, width in enumerate(TEMPLATE_WIDTHS, start=1):
        ws.column_dimensions[get_column_letter(i)].width = width

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(str(path))
    return str(path)
