import logging
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Union

from core.errors import ValidationError
from core.utils import generate_member_id
from models.member import PartyMember
from services.normalizer import normalize_record

logger = logging.getLogger(__name__)

ChangeListener = Callable[[List[Dict[str, Any]]], None]


class RosterStore:
    """
    The in-memory, ordered collection of party members.
    It is the single source of truth for a running session; everything else
    (local cache, exports, Drive) works on copies or snapshots of it.

    Every mutation notifies the registered listeners with a fresh snapshot
    AFTER the change has been applied. If a listener raises (e.g. a failed
    save), the error reaches the caller but the in-memory change is kept.
    """

    def __init__(self, members: Optional[Iterable[PartyMember]] = None):
        self._members: List[PartyMember] = [m.copy() for m in members or []]
        self._listeners: List[ChangeListener] = []

    # --- LISTENERS ---

    def subscribe(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in self._listeners:
            listener(snapshot)

    # --- READ ---

    def all(self) -> List[PartyMember]:
        """Returns copies of all members, in insertion order."""
        return [m.copy() for m in self._members]

    def get(self, member_id: str) -> Optional[PartyMember]:
        idx = self._index_of(member_id)
        return self._members[idx].copy() if idx is not None else None

    def snapshot(self) -> List[Dict[str, Any]]:
        """Plain-dict copy of the collection, ready for serialization."""
        return [m.to_dict() for m in self._members]

    def ids(self) -> List[str]:
        return [m.id for m in self._members]

    def __len__(self) -> int:
        return len(self._members)

    def __iter__(self) -> Iterator[PartyMember]:
        return iter(self.all())

    def _index_of(self, member_id: str) -> Optional[int]:
        for i, m in enumerate(self._members):
            if m.id == member_id:
                return i
        return None

    # --- WRITE ---

    def hydrate(self, members: Iterable[PartyMember]) -> None:
        """
        Installs the roster read at startup. Listeners are not notified,
        so loading never writes back to the cache.
        """
        self._members = [m.copy() for m in members]

    def _prepare(self, record: Union[PartyMember, Dict[str, Any]], taken: set) -> PartyMember:
        """
        Validates a record and gives it an ID that is unique in the store.

        Raises:
            ValidationError: If a required field is empty.
        """
        result = normalize_record(record)
        if not result.ok:
            raise ValidationError(result.reason)
        member = result.record

        while not member.id or member.id in taken:
            member.id = generate_member_id()
        return member

    def add(self, record: Union[PartyMember, Dict[str, Any]]) -> PartyMember:
        """
        Appends a single member.

        Returns:
            PartyMember: A copy of the stored member (with its final ID).

        Raises:
            ValidationError: If fullName or partyCardNumber is empty.
        """
        member = self._prepare(record, set(self.ids()))
        self._members.append(member)
        logger.info("Added member %s (%s)", member.id, member.fullName)
        self._notify()
        return member.copy()

    def add_many(self, records: Iterable[Union[PartyMember, Dict[str, Any]]]) -> List[PartyMember]:
        """
        Appends a batch. Each element is validated on its own;
        invalid ones are dropped and logged, the rest are kept.

        Returns:
            List[PartyMember]: Copies of the members that were added.
        """
        taken = set(self.ids())
        added: List[PartyMember] = []
        for index, record in enumerate(records):
            try:
                member = self._prepare(record, taken)
            except ValidationError as e:
                logger.info("Dropping batch record #%d: %s", index + 1, e)
                continue
            taken.add(member.id)
            added.append(member)

        if added:
            self._members.extend(added)
            logger.info("Added %d member(s) in bulk", len(added))
            self._notify()
        return [m.copy() for m in added]

    def update(self, member_id: str, patch: Union[PartyMember, Dict[str, Any]]) -> bool:
        """
        Replaces the fields of the member with this ID. The ID itself never changes.

        Returns:
            bool: True if a member was updated, False if the ID was not found (no-op).

        Raises:
            ValidationError: If the update would empty a required field.
        """
        idx = self._index_of(member_id)
        if idx is None:
            logger.debug("Update ignored, member %s not found", member_id)
            return False

        changes = patch.to_dict() if isinstance(patch, PartyMember) else dict(patch)
        merged = self._members[idx].to_dict()
        merged.update(changes)
        merged["id"] = member_id

        # Patches follow the same normalization as inbound records
        result = normalize_record(merged)
        if not result.ok:
            raise ValidationError(result.reason)
        member = result.record

        self._members[idx] = member
        logger.info("Updated member %s", member_id)
        self._notify()
        return True

    def remove(self, member_id: str) -> bool:
        """
        Deletes the member with this ID.

        Returns:
            bool: True if a member was deleted, False if the ID was not found (no-op).
        """
        idx = self._index_of(member_id)
        if idx is None:
            logger.debug("Remove ignored, member %s not found", member_id)
            return False

        removed = self._members.pop(idx)
        logger.info("Removed member %s (%s)", removed.id, removed.fullName)
        self._notify()
        return True

    def replace_all(self, records: Iterable[PartyMember]) -> None:
        """
        Discards the whole collection and installs `records` as given.
        Must only be called by ReplaceGate.confirm().
        """
        self._members = [m.copy() for m in records]
        logger.warning("Roster replaced wholesale (%d members)", len(self._members))
        self._notify()
