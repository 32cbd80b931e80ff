import datetime
from typing import Any, Dict, Iterable, List, Optional

import config
from core.utils import calculate_age
from models.member import PartyMember

# (title, member attribute) for the simple "count by value" groupings
GROUPINGS = [
    ("Giới tính", "gender"),
    ("Dân tộc", "ethnicity"),
    ("Tôn giáo", "religion"),
    ("Trình độ học vấn", "educationLevel"),
    ("Trình độ lý luận chính trị", "politicalTheoryLevel"),
]

AGE_TITLE = "Độ tuổi"


def age_group(age: Optional[int]) -> str:
    """Buckets an age into the report's age bands."""
    if age is None:
        return config.MISSING_LABEL
    if age < 30:
        return "Dưới 30"
    if age <= 40:
        return "30 - 40"
    if age <= 50:
        return "41 - 50"
    if age <= 60:
        return "51 - 60"
    return "Trên 60"


def _count(values: Iterable[str]) -> List[Dict[str, Any]]:
    # dicts keep insertion order, so groups appear in first-seen order
    counts: Dict[str, int] = {}
    for v in values:
        key = v or config.MISSING_LABEL
        counts[key] = counts.get(key, 0) + 1
    return [{"name": k, "value": n} for k, n in counts.items()]


def compute_statistics(members: List[PartyMember], today: Optional[datetime.date] = None) -> Dict[str, Any]:
    """
    Aggregates the roster for the statistics dashboard and report.

    Args:
        members (List[PartyMember]): The current roster.
        today (datetime.date, optional): Reference date for ages. Defaults to today.

    Returns:
        Dict: {'total': int, 'groups': [{'title': str, 'data': [{'name', 'value'}]}]}
              Groups come in dashboard order: gender, age, ethnicity, religion,
              education, political theory.
    """
    groups = []
    for title, attr in GROUPINGS:
        groups.append({"title": title, "data": _count(getattr(m, attr) for m in members)})

    ages = _count(age_group(calculate_age(m.dateOfBirth, today)) for m in members)
    groups.insert(1, {"title": AGE_TITLE, "data": ages})

    return {"total": len(members), "groups": groups}


def generate_roster_brief(members: List[PartyMember], today: Optional[datetime.date] = None) -> str:
    """
    Plain-text summary of the roster, for logs and quick display.
    """
    stats = compute_statistics(members, today)

    lines = []
    lines.append(f"TỔNG SỐ ĐẢNG VIÊN: {stats['total']}")
    lines.append("-" * 40)

    if stats["total"] == 0:
        lines.append("Không có dữ liệu để thống kê.")
        return "\n".join(lines)

    for group in stats["groups"]:
        lines.append("")
        lines.append(group["title"])
        for item in group["data"]:
            lines.append(f" • {item['name']}: {item['value']}")

    return "\n".join(lines)
