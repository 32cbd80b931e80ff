import logging
from typing import Any, Dict, List
from PySide6 import QtCore
from core.errors import SyncError
from services.cloud_service import DriveSync

logger = logging.getLogger(__name__)


class WorkerSignals(QtCore.QObject):
    """
    Defines signals for the Google Drive workers.

    Attributes:
        finished (object): Emitted with the result (file ID for push, decoded list for pull).
        error (str): Emitted on failure.
    """
    finished = QtCore.Signal(object)
    error = QtCore.Signal(str)


class PushWorker(QtCore.QRunnable):
    """
    Background worker that uploads the roster to Google Drive.
    Logs in first if needed (may open the browser).
    """
    def __init__(self, sync: DriveSync, snapshot: List[Dict[str, Any]]):
        super().__init__()
        self.sync = sync
        self.snapshot = snapshot
        self.signals = WorkerSignals()

    @QtCore.Slot()
    def run(self) -> None:
        try:
            self.sync.authenticate()
            file_id = self.sync.push(self.snapshot)
            self.signals.finished.emit(file_id)
        except SyncError as e:
            self.signals.error.emit(str(e))
        except Exception as e:
            logger.exception("%s failed", type(self).__name__)
            self.signals.error.emit(f"Lỗi không xác định: {e}")


class PullWorker(QtCore.QRunnable):
    """
    Background worker that downloads the roster from Google Drive.
    The result must be handed to the ReplaceGate on the GUI thread.
    """
    def __init__(self, sync: DriveSync):
        super().__init__()
        self.sync = sync
        self.signals = WorkerSignals()

    @QtCore.Slot()
    def run(self) -> None:
        try:
            self.sync.authenticate()
            data = self.sync.pull()
            self.signals.finished.emit(data)
        except SyncError as e:
            self.signals.error.emit(str(e))
        except Exception as e:
            logger.exception("%s failed", type(self).__name__)
            self.signals.error.emit(f"Lỗi không xác định: {e}")
