import os
import logging
from pathlib import Path
from typing import Optional, Union
import config

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def ensure_folder(p: Path) -> None:
    """Creates the folder if it does not exist."""
    p.mkdir(parents=True, exist_ok=True)


def init_paths(base_path: Union[str, Path]) -> None:
    """
    Initialize all global paths based on the selected base path.
    Sets up the data folder, database, export folder and Google credential files.
    """
    base_path = Path(base_path)
    config.BASE_FOLDER = base_path
    ensure_folder(config.BASE_FOLDER)

    config.DB_FILE = base_path / "roster.db"
    config.LOG_FILE = base_path / "roster.log"

    config.EXPORT_FOLDER = base_path / "Exports"
    ensure_folder(config.EXPORT_FOLDER)

    # NOTE: Keep 'credentials.json' and 'token.json' out of version control!
    config.CREDENTIALS_FILE = base_path / "credentials.json"
    config.TOKEN_FILE = base_path / "token.json"


def load_or_setup_paths(base_path: Optional[Union[str, Path]] = None) -> Path:
    """
    Resolves the data folder and initializes the global paths.

    Order: explicit argument, ROSTER_DATA_DIR environment variable,
    the folder remembered in ~/.party_roster_config, then ~/PartyRoster.
    An explicitly chosen folder is remembered for next time.

    Returns:
        Path: The data folder in use.
    """
    logger = logging.getLogger(__name__)

    if base_path is None and os.environ.get(config.DATA_DIR_ENV):
        base_path = os.environ[config.DATA_DIR_ENV]

    if base_path is not None:
        data_path = Path(base_path)
        try:
            config.CONFIG_FILE.write_text(str(data_path))
        except OSError as e:
            logger.warning("Failed to save configuration: %s", e)
    else:
        data_path = config.DEFAULT_DATA_FOLDER
        # 1. Try to load existing config
        if config.CONFIG_FILE.exists():
            try:
                content = config.CONFIG_FILE.read_text().strip()
                if content:
                    data_path = Path(content)
            except OSError as e:
                # If config is unreadable, fall back to the default folder
                logger.warning("Could not read %s: %s", config.CONFIG_FILE, e)

    init_paths(data_path)
    return data_path


def setup_logging(level: int = logging.INFO) -> None:
    """
    Sends log records to stderr and, once paths are initialized, to roster.log
    in the data folder.
    """
    handlers = [logging.StreamHandler()]
    if config.LOG_FILE:
        handlers.append(logging.FileHandler(config.LOG_FILE, encoding="utf-8"))

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)
