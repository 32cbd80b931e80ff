import json
import logging
import sqlite3
from typing import Any, Dict, Iterable, List, Optional, Union

import config
from core import database
from core.errors import PersistenceError
from models.member import PartyMember
from services.normalizer import normalize_batch

logger = logging.getLogger(__name__)


class DurableCache:
    """
    Write-through mirror of the roster in the local SQLite key-value table.

    The whole roster lives as one JSON array under config.ROSTER_KEY and is
    rewritten completely on every save. The cached Drive file ID lives under
    config.REMOTE_FILE_ID_KEY.
    """

    def __init__(self, roster_key: Optional[str] = None):
        self.roster_key = roster_key or config.ROSTER_KEY
        # True after a failed save, until the next successful one
        self.memory_only = False

    def load(self) -> List[PartyMember]:
        """
        Reads the saved roster. Never raises.

        Returns:
            List[PartyMember]: The stored members, or [] if nothing usable is stored.
        """
        try:
            blob = database.kv_get(self.roster_key)
        except sqlite3.Error as e:
            logger.warning("Could not read saved roster, starting empty: %s", e)
            return []

        if blob is None:
            return []

        try:
            data = json.loads(blob)
        except ValueError as e:
            logger.warning("Saved roster is not valid JSON, starting empty: %s", e)
            return []

        if not isinstance(data, list):
            logger.warning("Saved roster is not a list (%s), starting empty", type(data).__name__)
            return []

        members, rejected = normalize_batch(data)
        if rejected:
            logger.warning("Dropped %d invalid record(s) from saved roster", rejected)
        return members

    def save(self, records: Iterable[Union[PartyMember, Dict[str, Any]]]) -> None:
        """
        Overwrites the saved roster with the full collection.

        Raises:
            PersistenceError: If the roster cannot be serialized or the database write fails.
                The caller keeps working in memory.
        """
        rows = [r.to_dict() if isinstance(r, PartyMember) else r for r in records]
        try:
            blob = json.dumps(rows, ensure_ascii=False)
            database.kv_set(self.roster_key, blob)
        except (TypeError, ValueError, sqlite3.Error) as e:
            self.memory_only = True
            logger.error("Failed to save roster (%d members): %s", len(rows), e)
            raise PersistenceError(f"Không thể lưu dữ liệu: {e}") from e

        self.memory_only = False

    # --- DRIVE FILE ID ---

    def get_remote_file_id(self) -> Optional[str]:
        try:
            return database.kv_get(config.REMOTE_FILE_ID_KEY) or None
        except sqlite3.Error as e:
            logger.warning("Could not read cached Drive file ID: %s", e)
            return None

    def set_remote_file_id(self, file_id: str) -> None:
        try:
            database.kv_set(config.REMOTE_FILE_ID_KEY, file_id)
        except sqlite3.Error as e:
            # Only costs an extra search next time
            logger.warning("Could not cache Drive file ID: %s", e)

    def clear_remote_file_id(self) -> None:
        try:
            database.kv_delete(config.REMOTE_FILE_ID_KEY)
        except sqlite3.Error as e:
            logger.warning("Could not clear cached Drive file ID: %s", e)
