import logging
from enum import Enum
from typing import Iterable, List, Optional

from core.errors import StateError
from models.member import PartyMember
from services.roster_store import RosterStore

logger = logging.getLogger(__name__)


class GateState(Enum):
    IDLE = "idle"
    PENDING = "pending"


class ImportSource(Enum):
    LOCAL_FILE = "local-file"
    REMOTE = "remote"


class ReplaceGate:
    """
    Holds a candidate roster (from a file or Google Drive) until the user
    explicitly confirms that it should replace the current one.

    IDLE --propose--> PENDING --confirm--> (replace_all) --> IDLE
                              --cancel---> IDLE

    Only one candidate can be pending; proposing again before confirming or
    cancelling raises StateError. confirm() is the only caller of
    RosterStore.replace_all().
    """

    def __init__(self, store: RosterStore):
        self._store = store
        self._state = GateState.IDLE
        self._candidate: Optional[List[PartyMember]] = None
        self._source: Optional[ImportSource] = None

    @property
    def store(self) -> RosterStore:
        return self._store

    @property
    def state(self) -> GateState:
        return self._state

    @property
    def pending(self) -> Optional[List[PartyMember]]:
        """Copy of the pending candidate, or None."""
        if self._candidate is None:
            return None
        return [m.copy() for m in self._candidate]

    @property
    def source(self) -> Optional[ImportSource]:
        return self._source

    def propose(self, candidate: Iterable[PartyMember], source: ImportSource) -> int:
        """
        Stages a replacement roster.

        Returns:
            int: Number of members in the candidate (for the confirmation prompt).

        Raises:
            StateError: If another candidate is already pending.
        """
        if self._state is not GateState.IDLE:
            raise StateError("Đang có dữ liệu chờ xác nhận. Hãy xác nhận hoặc hủy trước.")

        self._candidate = [m.copy() for m in candidate]
        self._source = source
        self._state = GateState.PENDING
        logger.info("Replacement staged from %s: %d member(s)", source.value, len(self._candidate))
        return len(self._candidate)

    def confirm(self) -> int:
        """
        Commits the pending candidate, replacing the whole roster.

        Returns:
            int: Number of members now in the roster.

        Raises:
            StateError: If nothing is pending.
        """
        if self._state is not GateState.PENDING:
            raise StateError("Không có dữ liệu nào chờ xác nhận.")

        candidate, source = self._candidate, self._source
        # Back to IDLE even if persisting the new roster fails
        self._reset()
        logger.info("Replacement from %s confirmed", source.value)
        self._store.replace_all(candidate)
        return len(candidate)

    def cancel(self) -> None:
        """Discards the pending candidate. The roster is not touched."""
        if self._state is GateState.PENDING:
            logger.info("Replacement from %s cancelled", self._source.value)
        self._reset()

    def _reset(self) -> None:
        self._candidate = None
        self._source = None
        self._state = GateState.IDLE
