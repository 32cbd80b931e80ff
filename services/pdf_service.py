import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union
from reportlab.pdfgen import canvas
from reportlab.lib.pagesizes import A4
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont, TTFError
import config
from core.utils import calculate_age, format_date_vn
from models.member import PartyMember
from services.file_manager import ensure_folder
from services.spreadsheet_service import format_courses

logger = logging.getLogger(__name__)

# Built-in Type1 fonts have no Vietnamese glyphs; a TTF (e.g. DejaVuSans, Times New Roman)
# can be configured through config.PDF_FONT_FILE.
UNICODE_FONT = "RosterUnicode"


def _fonts() -> Tuple[str, str]:
    """Returns (regular, bold) font names, registering the configured TTF once."""
    font_file = getattr(config, "PDF_FONT_FILE", None)
    if font_file and Path(font_file).exists():
        if UNICODE_FONT not in pdfmetrics.getRegisteredFontNames():
            try:
                pdfmetrics.registerFont(TTFont(UNICODE_FONT, str(font_file)))
            except (TTFError, OSError) as e:
                logger.warning("Could not load PDF font %s, using Helvetica: %s", font_file, e)
                return "Helvetica", "Helvetica-Bold"
        return UNICODE_FONT, UNICODE_FONT
    return "Helvetica", "Helvetica-Bold"


def create_member_pdf(save_path: Union[str, Path], member: PartyMember) -> str:
    """
    Generates a one-page profile card for a party member.

    Args:
        save_path (Path): The full path where the PDF will be saved.
        member (PartyMember): The member to print.

    Returns:
        str: The saved path.
    """
    save_path = Path(save_path)
    ensure_folder(save_path.parent)
    regular, bold = _fonts()

    c = canvas.Canvas(str(save_path), pagesize=A4)
    w, h = A4
    y = h - 50

    # --- HEADER ---
    c.setFont(bold, 18)
    c.setFillColorRGB(0.7, 0.0, 0.0)  # Party red
    c.drawString(60, y, "HỒ SƠ ĐẢNG VIÊN")

    y -= 30
    c.setFont(regular, 12)
    c.setFillColorRGB(0, 0, 0)

    # --- BODY FIELDS ---
    fields = [
        ("Họ và tên", member.fullName),
        ("Ngày sinh", format_date_vn(member.dateOfBirth)),
        ("Giới tính", member.gender),
        ("Dân tộc", member.ethnicity),
        ("Tôn giáo", member.religion),
        ("Mã định danh", member.idCode),
        ("Trình độ học vấn", member.educationLevel),
        ("Chức vụ", member.position),
        ("Trình độ LLCT", member.politicalTheoryLevel),
        ("Số thẻ đảng", member.partyCardNumber),
        ("Ngày kết nạp", format_date_vn(member.admissionDate)),
        ("Ngày chính thức", format_date_vn(member.officialDate)),
    ]
    for label, val in fields:
        c.drawString(60, y, f"{label}: {val or 'N/A'}")
        y -= 18

    # Training courses (one per line)
    if member.trainingCourses:
        y -= 6
        c.drawString(60, y, "Các lớp bồi dưỡng:")
        for course in member.trainingCourses:
            y -= 18
            c.drawString(80, y, f"- {format_courses([course])}")

    # --- FOOTER ---
    c.setFont(regular, 9)
    c.setFillColorRGB(0.3, 0.3, 0.3)
    c.drawString(60, 55, f"ID: {member.id}")

    c.save()
    return str(save_path)


def create_roster_pdf(save_path: Union[str, Path], members: List[PartyMember], title: Optional[str] = None) -> str:
    """
    Prints the roster as a simple table, continuing on new pages as needed.

    Returns:
        str: The saved path.
    """
    save_path = Path(save_path)
    ensure_folder(save_path.parent)
    regular, bold = _fonts()

    c = canvas.Canvas(str(save_path), pagesize=A4)
    w, h = A4
    columns = [("STT", 40), ("Họ và tên", 70), ("Tuổi", 230), ("Giới tính", 270),
               ("Số thẻ đảng", 330), ("Ngày chính thức", 440)]

    def header(y: float) -> float:
        c.setFont(bold, 10)
        for label, x in columns:
            c.drawString(x, y, label)
        return y - 16

    y = h - 50
    c.setFont(bold, 16)
    c.drawString(40, y, title or "DANH SÁCH ĐẢNG VIÊN")
    y = header(y - 30)

    for index, m in enumerate(members, start=1):
        if y < 60:
            c.showPage()
            y = header(h - 50)
        age = calculate_age(m.dateOfBirth)
        values = [str(index), m.fullName, str(age) if age is not None else "N/A", m.gender,
                  m.partyCardNumber, format_date_vn(m.officialDate)]
        c.setFont(regular, 10)
        for (_, x), val in zip(columns, values):
            c.drawString(x, y, val)
        y -= 14

    c.save()
    return str(save_path)
