"""
Word-compatible (.doc) reports.

Word opens HTML saved with a .doc extension when it carries the Office XML
namespaces, so the reports are plain Jinja2-rendered HTML documents.
These files are write-only: they are never imported back.
"""
import datetime
from pathlib import Path
from typing import List, Optional, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from core.utils import calculate_age, format_date_vn
from models.member import PartyMember
from services.analytics_service import compute_statistics

TEMPLATE_DIR = Path(__file__).parent / "templates"

ROSTER_TEMPLATE = "roster.doc.html"
STATISTICS_TEMPLATE = "statistics.doc.html"

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(['html', 'xml']),
    trim_blocks=True,
    lstrip_blocks=True,
)
_env.filters['vn_date'] = format_date_vn


def render_roster_doc(members: List[PartyMember], today: Optional[datetime.date] = None) -> str:
    """Tabular roster: STT, name, age, gender, position, card number, official date."""
    rows = []
    for m in members:
        age = calculate_age(m.dateOfBirth, today)
        rows.append({"member": m, "age": age if age is not None else "N/A"})
    return _env.get_template(ROSTER_TEMPLATE).render(rows=rows)


def render_statistics_doc(members: List[PartyMember], today: Optional[datetime.date] = None) -> str:
    """Grouped statistics report. Empty groups are left out."""
    stats = compute_statistics(members, today)
    return _env.get_template(STATISTICS_TEMPLATE).render(
        total=stats["total"],
        groups=[g for g in stats["groups"] if g["data"]],
    )


def write_report(path: Union[str, Path], html: str) -> str:
    """Saves a rendered report. Returns the saved path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(html, encoding="utf-8")
    return str(path)
