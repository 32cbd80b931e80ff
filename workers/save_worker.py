import logging
from typing import Any, Dict, List, Optional
from PySide6 import QtCore
from core.errors import PersistenceError
from services.cache_service import DurableCache

logger = logging.getLogger(__name__)


class WorkerSignals(QtCore.QObject):
    """
    Defines the signals available from a running worker thread.

    Attributes:
        finished (int): Emitted with the number of members saved.
        error (str): Emitted with an error message if saving fails.
    """
    finished = QtCore.Signal(int)
    error = QtCore.Signal(str)


class SaveWorker(QtCore.QRunnable):
    """
    Background worker that writes a roster snapshot to the local database.
    This prevents the GUI from freezing on large rosters (photos are stored inline).
    """
    def __init__(self, cache: DurableCache, snapshot: List[Dict[str, Any]]):
        super().__init__()
        self.cache = cache
        self.snapshot = snapshot
        self.signals = WorkerSignals()

    @QtCore.Slot()
    def run(self) -> None:
        """
        Executes the save operation.
        """
        try:
            self.cache.save(self.snapshot)
            self.signals.finished.emit(len(self.snapshot))
        except PersistenceError as e:
            self.signals.error.emit(str(e))
        except Exception as e:
            logger.exception("%s failed", type(self).__name__)
            self.signals.error.emit(f"Lỗi không xác định: {e}")


class SaveQueue:
    """
    Runs SaveWorkers one at a time, in the order they were queued,
    so an older snapshot can never overwrite a newer one.
    """
    def __init__(self, cache: DurableCache, pool: Optional[QtCore.QThreadPool] = None):
        self.cache = cache
        self.pool = pool or QtCore.QThreadPool()
        self.pool.setMaxThreadCount(1)
        self.on_error = None

    def enqueue(self, snapshot: List[Dict[str, Any]]) -> SaveWorker:
        w = SaveWorker(self.cache, snapshot)
        if self.on_error:
            w.signals.error.connect(self.on_error)
        self.pool.start(w)
        return w

    def wait(self, msecs: int = -1) -> bool:
        """Blocks until pending saves are written (used on shutdown)."""
        return self.pool.waitForDone(msecs)
