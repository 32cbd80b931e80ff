from pathlib import Path

# Global Config (paths are filled in by services.file_manager.init_paths)
BASE_FOLDER = None
DB_FILE = None
EXPORT_FOLDER = None
LOG_FILE = None
CREDENTIALS_FILE = None
TOKEN_FILE = None

APP_TITLE = "Hệ Thống Quản Lý Hồ Sơ Đảng Viên"

# Hidden file in the user's home directory remembering the chosen data folder
CONFIG_FILE = Path.home() / ".party_roster_config"
DEFAULT_DATA_FOLDER = Path.home() / "PartyRoster"
DATA_DIR_ENV = "ROSTER_DATA_DIR"

# Local key-value storage keys
ROSTER_KEY = "partyMembers"
REMOTE_FILE_ID_KEY = "driveFileId"

# Google Drive sync target
# If modifying these scopes, delete the file token.json.
SCOPES = ['https://www.googleapis.com/auth/drive.file']
REMOTE_FILE_NAME = "party_members_data.json"
REMOTE_MIME_TYPE = "application/json"

GENDERS = ("Nam", "Nữ", "Khác")
DEFAULT_GENDER = "Khác"

# Label used by reports for missing classification values
MISSING_LABEL = "Chưa có"

# Optional TTF font for PDF exports (needed for Vietnamese diacritics)
PDF_FONT_FILE = None
