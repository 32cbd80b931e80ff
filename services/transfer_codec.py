import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Tuple, Union

from core.errors import FormatError
from models.member import PartyMember
from services.normalizer import normalize_batch, normalize_courses

logger = logging.getLogger(__name__)

Record = Union[PartyMember, Dict[str, Any]]


def _as_dict(record: Record) -> Dict[str, Any]:
    return record.to_dict() if isinstance(record, PartyMember) else dict(record)


def encode(records: Iterable[Record]) -> str:
    """
    Serializes the roster as a pretty-printed JSON array.
    Vietnamese text is kept readable (no \\u escapes).
    """
    return json.dumps([_as_dict(r) for r in records], ensure_ascii=False, indent=2)


def decode(document: Union[str, bytes]) -> List[Any]:
    """
    Parses a roster document. Only the top-level shape is checked;
    individual records are validated when the batch is committed.

    Raises:
        FormatError: If the text is not JSON or the root is not an array.
    """
    if isinstance(document, bytes):
        try:
            document = document.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise FormatError(f"File is not UTF-8 text: {e}") from e

    try:
        data = json.loads(document)
    except ValueError as e:
        raise FormatError(f"Invalid JSON: {e}") from e

    if not isinstance(data, list):
        raise FormatError("not an array-shaped document")
    return data


def decode_records(document: Union[str, bytes]) -> Tuple[List[PartyMember], int]:
    """
    Decodes and normalizes a roster document.

    Returns:
        Tuple[List[PartyMember], int]: (valid members, number of rejected elements).
    """
    members, rejected = normalize_batch(decode(document))
    if rejected:
        logger.info("Roster document: %d valid, %d rejected", len(members), rejected)
    return members, rejected


# --- FILES ---

def write_json_file(path: Union[str, Path], records: Iterable[Record]) -> str:
    """Writes the roster to a .json file. Returns the saved path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(encode(records), encoding="utf-8")
    return str(path)


def read_json_file(path: Union[str, Path]) -> List[Any]:
    """
    Raises:
        FormatError: If the file cannot be read or is not a JSON array.
    """
    try:
        raw = Path(path).read_bytes()
    except OSError as e:
        raise FormatError(f"Cannot read {path}: {e}") from e
    return decode(raw)


# --- SINGLE PROFILE ---

def encode_member(member: Record) -> str:
    """Pretty-printed JSON of one profile (the entry form's 'export' button)."""
    return json.dumps(_as_dict(member), ensure_ascii=False, indent=2)


def decode_member(document: Union[str, bytes]) -> Dict[str, Any]:
    """
    Parses one exported profile to pre-fill the entry form.
    trainingCourses is coerced into a list of course dicts.

    Raises:
        FormatError: If the text is not JSON or the root is not an object.
    """
    if isinstance(document, bytes):
        document = document.decode("utf-8-sig", errors="replace")
    try:
        data = json.loads(document)
    except ValueError as e:
        raise FormatError(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise FormatError("not an object-shaped document")

    data["trainingCourses"] = [
        {"name": c.name, "date": c.date} for c in normalize_courses(data.get("trainingCourses"))
    ]
    return data


def profile_filename(member: Record) -> str:
    """Download name for a single profile, e.g. 'Nguyen_Van_A.json'."""
    name = _as_dict(member).get("fullName") or ""
    return f"{'_'.join(name.split()) or 'ho_so_dang_vien'}.json"
