import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import config
from core.errors import FormatError, SyncError
from models.member import PartyMember
from services import pdf_service, report_service, spreadsheet_service, transfer_codec
from services.analytics_service import compute_statistics
from services.cache_service import DurableCache
from services.cloud_service import DriveSync
from services.normalizer import normalize_batch
from services.replace_gate import ImportSource, ReplaceGate
from services.roster_store import RosterStore

logger = logging.getLogger(__name__)

# Default export file names (same as the downloads users already know)
JSON_EXPORT = "danh-sach-dang-vien.json"
EXCEL_EXPORT = "danh-sach-dang-vien.xlsx"
TEMPLATE_EXPORT = "mau-nhap-lieu-dang-vien.xlsx"
ROSTER_DOC_EXPORT = "danh-sach-dang-vien.doc"
STATISTICS_DOC_EXPORT = "bao-cao-thong-ke-dang-vien.doc"
ROSTER_PDF_EXPORT = "danh-sach-dang-vien.pdf"

PathLike = Union[str, Path]


class RosterService:
    """
    Entry point for the presentation layer.

    1. start() hydrates the roster from the local database.
    2. Every change is saved right away (or queued on a SaveQueue).
    3. Imports that would replace the roster go through the ReplaceGate.
    4. Google Drive sync is optional and always user-triggered.
    """

    def __init__(self, cache: DurableCache, store: Optional[RosterStore] = None,
                 gate: Optional[ReplaceGate] = None, sync: Optional[DriveSync] = None, save_queue=None):
        """
        Args:
            cache (DurableCache): Local database mirror.
            store (RosterStore): Shared roster; a new empty one is created if omitted.
            gate (ReplaceGate): Must wrap `store`; created if omitted.
            sync (DriveSync): Optional Google Drive adapter.
            save_queue (SaveQueue): If given, saves run off the calling thread.
        """
        self.cache = cache
        self.sync = sync
        self.save_queue = save_queue
        if store is None:
            store = gate.store if gate is not None else RosterStore()
        self.store = store
        if gate is not None and gate.store is not self.store:
            raise ValueError("ReplaceGate must wrap the same RosterStore")
        self.gate = gate if gate is not None else ReplaceGate(self.store)
        self.store.subscribe(self._persist)

    def start(self) -> "RosterService":
        """Loads the saved roster into the existing store. Loading never triggers a save."""
        members = self.cache.load()
        self.store.hydrate(members)
        logger.info("Roster loaded: %d member(s)", len(members))
        return self

    def _persist(self, snapshot: List[Dict[str, Any]]) -> None:
        if self.save_queue is not None:
            self.save_queue.enqueue(snapshot)
        else:
            self.cache.save(snapshot)

    # --- CRUD ---

    def members(self) -> List[PartyMember]:
        return self.store.all()

    def get_member(self, member_id: str) -> Optional[PartyMember]:
        return self.store.get(member_id)

    def add_member(self, member: Union[PartyMember, Dict[str, Any]]) -> PartyMember:
        return self.store.add(member)

    def add_members(self, members: Iterable[Union[PartyMember, Dict[str, Any]]]) -> List[PartyMember]:
        return self.store.add_many(members)

    def update_member(self, member_id: str, patch: Union[PartyMember, Dict[str, Any]]) -> bool:
        return self.store.update(member_id, patch)

    def delete_member(self, member_id: str) -> bool:
        return self.store.remove(member_id)

    # --- IMPORT ---

    def stage_json_import(self, path: PathLike) -> int:
        """
        Reads a .json roster and stages it for replacement.

        Returns:
            int: Number of valid members waiting for confirmation.

        Raises:
            FormatError: If the file is not a JSON array.
            StateError: If another import is already waiting for confirmation.
        """
        members, rejected = normalize_batch(transfer_codec.read_json_file(path))
        if rejected:
            logger.warning("%s: %d invalid record(s) skipped", Path(path).name, rejected)
        return self.gate.propose(members, ImportSource.LOCAL_FILE)

    def stage_excel_import(self, path: PathLike) -> int:
        """
        Reads a spreadsheet and stages it for replacement.

        Raises:
            FormatError: If the workbook is unreadable or has no valid rows.
            StateError: If another import is already waiting for confirmation.
        """
        members = self._read_excel(path)
        return self.gate.propose(members, ImportSource.LOCAL_FILE)

    def append_excel_import(self, path: PathLike) -> List[PartyMember]:
        """
        Adds the rows of a spreadsheet to the current roster (nothing is replaced).

        Raises:
            FormatError: If the workbook is unreadable or has no valid rows.
        """
        return self.store.add_many(self._read_excel(path))

    def _read_excel(self, path: PathLike) -> List[PartyMember]:
        members = spreadsheet_service.import_excel(path)
        if not members:
            raise FormatError("Không tìm thấy dữ liệu Đảng viên hợp lệ trong file. Vui lòng kiểm tra lại định dạng file.")
        return members

    def stage_remote_import(self) -> int:
        """
        Downloads the roster from Google Drive and stages it for replacement.

        Raises:
            SyncError: If sync is not configured, the user is not logged in, or the download fails.
            StateError: If another import is already waiting for confirmation.
        """
        return self.stage_remote_data(self._require_sync().pull())

    def stage_remote_data(self, data: List[Any]) -> int:
        """Stages an already-downloaded Drive payload (see workers.sync_worker.PullWorker)."""
        members, rejected = normalize_batch(data)
        if rejected:
            logger.warning("Drive roster: %d invalid record(s) skipped", rejected)
        return self.gate.propose(members, ImportSource.REMOTE)

    def confirm_import(self) -> int:
        return self.gate.confirm()

    def cancel_import(self) -> None:
        self.gate.cancel()

    # --- SYNC ---

    def _require_sync(self) -> DriveSync:
        if self.sync is None:
            raise SyncError("Google Drive sync is not configured.")
        return self.sync

    def push_to_remote(self) -> str:
        """
        Uploads the current roster to Google Drive.

        Returns:
            str: The Drive file ID.
        """
        return self._require_sync().push(self.store.snapshot())

    # --- EXPORT ---

    def _target(self, path: Optional[PathLike], default_name: str) -> Path:
        if path is not None:
            return Path(path)
        if not config.EXPORT_FOLDER:
            raise FormatError("Export folder is not configured.")
        return Path(config.EXPORT_FOLDER) / default_name

    def export_json(self, path: Optional[PathLike] = None) -> str:
        return transfer_codec.write_json_file(self._target(path, JSON_EXPORT), self.store.snapshot())

    def export_excel(self, path: Optional[PathLike] = None) -> str:
        return spreadsheet_service.export_excel(self._target(path, EXCEL_EXPORT), self.store.all())

    def export_template(self, path: Optional[PathLike] = None) -> str:
        return spreadsheet_service.export_template(self._target(path, TEMPLATE_EXPORT))

    def export_roster_doc(self, path: Optional[PathLike] = None) -> str:
        html = report_service.render_roster_doc(self.store.all())
        return report_service.write_report(self._target(path, ROSTER_DOC_EXPORT), html)

    def export_statistics_doc(self, path: Optional[PathLike] = None) -> Optional[str]:
        """Returns None when the roster is empty (nothing to report)."""
        members = self.store.all()
        if not members:
            return None
        html = report_service.render_statistics_doc(members)
        return report_service.write_report(self._target(path, STATISTICS_DOC_EXPORT), html)

    def export_roster_pdf(self, path: Optional[PathLike] = None) -> str:
        return pdf_service.create_roster_pdf(self._target(path, ROSTER_PDF_EXPORT), self.store.all())

    def export_member_pdf(self, member_id: str, path: Optional[PathLike] = None) -> Optional[str]:
        """Profile card for one member. Returns None if the ID is unknown."""
        member = self.store.get(member_id)
        if member is None:
            return None
        name = transfer_codec.profile_filename(member).replace(".json", ".pdf")
        return pdf_service.create_member_pdf(self._target(path, name), member)

    def export_member_json(self, member_id: str, path: Optional[PathLike] = None) -> Optional[str]:
        """Single-profile .json (e.g. Nguyen_Van_A.json). Returns None if the ID is unknown."""
        member = self.store.get(member_id)
        if member is None:
            return None
        target = self._target(path, transfer_codec.profile_filename(member))
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(transfer_codec.encode_member(member), encoding="utf-8")
        return str(target)

    @staticmethod
    def read_member_profile(path: PathLike) -> Dict[str, Any]:
        """
        Reads a single-profile .json to pre-fill the entry form. Nothing is saved.

        Raises:
            FormatError: If the file is unreadable or not a JSON object.
        """
        try:
            raw = Path(path).read_bytes()
        except OSError as e:
            raise FormatError(f"Cannot read {path}: {e}") from e
        return transfer_codec.decode_member(raw)

    def statistics(self) -> Dict[str, Any]:
        return compute_statistics(self.store.all())
