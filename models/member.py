from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

# Stable key order used for JSON export and local storage
FIELD_ORDER = [
    "id", "fullName", "dateOfBirth", "gender", "position", "politicalTheoryLevel",
    "partyCardNumber", "admissionDate", "officialDate", "trainingCourses",
    "profilePicture", "ethnicity", "religion", "educationLevel", "idCode",
]


@dataclass
class TrainingCourse:
    """A political/professional training course attended by a member."""
    name: str
    date: str = ""  # ISO date or empty


@dataclass
class PartyMember:
    """
    Represents a single party member's profile.
    Attribute names match the keys of the exported JSON documents.
    """
    id: str
    fullName: str
    partyCardNumber: str
    gender: str = "Khác"  # 'Nam', 'Nữ' or 'Khác'
    dateOfBirth: str = ""
    position: str = ""
    politicalTheoryLevel: str = ""
    admissionDate: str = ""   # Date admitted to the party
    officialDate: str = ""    # Date of official membership
    trainingCourses: List[TrainingCourse] = field(default_factory=list)
    profilePicture: Optional[str] = None  # Base64 data URL
    ethnicity: Optional[str] = None
    religion: Optional[str] = None
    educationLevel: Optional[str] = None
    idCode: Optional[str] = None  # National identification code

    def to_dict(self) -> Dict[str, Any]:
        """Plain dictionary in FIELD_ORDER. Absent optional fields are omitted."""
        raw = asdict(self)
        return {k: raw[k] for k in FIELD_ORDER if raw[k] is not None}

    def copy(self) -> "PartyMember":
        return PartyMember.from_dict(self.to_dict())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PartyMember":
        """
        Builds a member from an already-normalized dictionary.
        Use services.normalizer for untrusted input.
        """
        courses = [
            c if isinstance(c, TrainingCourse) else TrainingCourse(name=c.get("name", ""), date=c.get("date", ""))
            for c in data.get("trainingCourses", [])
        ]
        kwargs = {k: data[k] for k in FIELD_ORDER if k in data and k != "trainingCourses"}
        return cls(trainingCourses=courses, **kwargs)
