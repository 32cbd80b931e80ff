"""
Pytest configuration for the roster tests.

Every test gets its own data folder under tmp_path: config paths are pointed
there and the SQLite key-value table is created fresh.
"""
import pytest

import config
from core.database import init_db
from models.member import PartyMember, TrainingCourse
from services.cache_service import DurableCache
from services.file_manager import init_paths
from services.roster_service import RosterService


@pytest.fixture(autouse=True)
def data_dir(tmp_path, monkeypatch):
    """Isolated data folder; never touches the real home directory."""
    monkeypatch.setattr(config, "CONFIG_FILE", tmp_path / ".party_roster_config")
    monkeypatch.setattr(config, "PDF_FONT_FILE", None)
    for name in ("BASE_FOLDER", "DB_FILE", "EXPORT_FOLDER", "LOG_FILE", "CREDENTIALS_FILE", "TOKEN_FILE"):
        monkeypatch.setattr(config, name, None)

    base = tmp_path / "data"
    init_paths(base)
    init_db()
    return base


@pytest.fixture
def cache():
    return DurableCache()


@pytest.fixture
def service(cache):
    return RosterService(cache).start()


def make_member(member_id="m-1", name="Nguyễn Văn A", card="001", **kw):
    """Build a valid PartyMember with sensible defaults."""
    kw.setdefault("gender", "Nam")
    kw.setdefault("dateOfBirth", "1980-03-07")
    return PartyMember(id=member_id, fullName=name, partyCardNumber=card, **kw)


@pytest.fixture
def sample_members():
    return [
        make_member("m-1", "Nguyễn Văn A", "001", ethnicity="Kinh", officialDate="2005-05-19",
                    trainingCourses=[TrainingCourse(name="Lớp A", date="2010-01-02")]),
        make_member("m-2", "Trần Thị B", "002", gender="Nữ", dateOfBirth="1995-10-10",
                    religion="Không", politicalTheoryLevel="Trung cấp"),
        make_member("m-3", "Lê Văn C", "003", dateOfBirth="", gender="Khác"),
    ]
