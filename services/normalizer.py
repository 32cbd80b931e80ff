"""
Normalization of untrusted member data (imported files, cached blobs, Drive downloads).

Every inbound record passes through normalize_record(), which returns a tagged
NormalizeResult instead of raising, so a bad row never aborts a whole batch.
"""
import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Tuple

import config
from core.errors import ValidationError
from core.utils import generate_member_id, to_iso_date
from models.member import PartyMember, TrainingCourse

logger = logging.getLogger(__name__)

TEXT_FIELDS = ["fullName", "partyCardNumber", "position", "politicalTheoryLevel"]
OPTIONAL_TEXT_FIELDS = ["ethnicity", "religion", "educationLevel", "idCode", "profilePicture"]
DATE_FIELDS = ["dateOfBirth", "admissionDate", "officialDate"]


@dataclass
class NormalizeResult:
    """Either an accepted record or the reason it was rejected."""
    record: Optional[PartyMember] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.record is not None


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def normalize_courses(value: Any) -> List[TrainingCourse]:
    """
    Coerces the trainingCourses field into a list of TrainingCourse.
    A legacy bare string becomes a one-element list; anything unusable becomes [].
    """
    if isinstance(value, str):
        name = value.strip()
        return [TrainingCourse(name=name, date="")] if name else []

    if not isinstance(value, (list, tuple)):
        return []

    courses = []
    for item in value:
        if isinstance(item, TrainingCourse):
            courses.append(TrainingCourse(name=item.name, date=item.date))
        elif isinstance(item, dict):
            courses.append(TrainingCourse(name=_text(item.get("name")), date=to_iso_date(item.get("date"))))
        elif isinstance(item, str) and item.strip():
            courses.append(TrainingCourse(name=item.strip(), date=""))
    return courses


def validate_required(member: PartyMember) -> None:
    """
    Raises:
        ValidationError: If fullName or partyCardNumber is empty.
    """
    if not member.fullName or not member.fullName.strip():
        raise ValidationError("Họ và tên không được để trống (fullName is required)")
    if not member.partyCardNumber or not member.partyCardNumber.strip():
        raise ValidationError("Số thẻ đảng không được để trống (partyCardNumber is required)")


def normalize_record(raw: Any) -> NormalizeResult:
    """
    Converts one untrusted value into a PartyMember.

    Args:
        raw: A dict (as decoded from JSON) or an existing PartyMember.

    Returns:
        NormalizeResult: ok with the record, or rejected with a reason.
    """
    if isinstance(raw, PartyMember):
        raw = raw.to_dict()
    if not isinstance(raw, dict):
        return NormalizeResult(reason=f"not an object: {type(raw).__name__}")

    data = {k: _text(raw.get(k)) for k in TEXT_FIELDS}
    for key in DATE_FIELDS:
        data[key] = to_iso_date(raw.get(key))
    for key in OPTIONAL_TEXT_FIELDS:
        if raw.get(key) is not None:
            data[key] = _text(raw.get(key))

    gender = _text(raw.get("gender"))
    data["gender"] = gender if gender in config.GENDERS else config.DEFAULT_GENDER

    member_id = _text(raw.get("id"))
    member = PartyMember(
        id=member_id or generate_member_id(),
        trainingCourses=normalize_courses(raw.get("trainingCourses")),
        **data,
    )

    try:
        validate_required(member)
    except ValidationError as e:
        return NormalizeResult(reason=str(e))

    return NormalizeResult(record=member)


def normalize_batch(items: Iterable[Any]) -> Tuple[List[PartyMember], int]:
    """
    Normalizes a batch, dropping invalid elements.
    Repeated IDs inside the batch are replaced with fresh ones.

    Returns:
        Tuple[List[PartyMember], int]: (accepted records, number rejected).
    """
    accepted: List[PartyMember] = []
    seen = set()
    rejected = 0
    for index, raw in enumerate(items):
        result = normalize_record(raw)
        if result.ok:
            member = result.record
            while member.id in seen:
                member.id = generate_member_id()
            seen.add(member.id)
            accepted.append(member)
        else:
            rejected += 1
            logger.info("Skipping record #%d: %s", index + 1, result.reason)
    return accepted, rejected
