import logging
from pathlib import Path
from typing import Union
from PySide6 import QtCore
from core.errors import FormatError
from services.spreadsheet_service import import_excel
from services.transfer_codec import read_json_file
from services.normalizer import normalize_batch

# .xls is refused by spreadsheet_service.read_rows
EXCEL_SUFFIXES = {".xlsx", ".xlsm", ".xls"}

logger = logging.getLogger(__name__)


class WorkerSignals(QtCore.QObject):
    """
    Defines signals for the ImportWorker.

    Attributes:
        finished (object): Emitted with the list of valid PartyMember objects.
        error (str): Emitted if the file is unreadable or malformed.
    """
    finished = QtCore.Signal(object)
    error = QtCore.Signal(str)


class ImportWorker(QtCore.QRunnable):
    """
    Background worker that reads and validates an import file (.json or .xlsx).
    Nothing is applied to the roster here; the caller decides (append or ReplaceGate).
    """
    def __init__(self, path: Union[str, Path]):
        super().__init__()
        self.path = Path(path)
        self.signals = WorkerSignals()

    @QtCore.Slot()
    def run(self) -> None:
        try:
            if self.path.suffix.lower() in EXCEL_SUFFIXES:
                members = import_excel(self.path)
            else:
                members, _ = normalize_batch(read_json_file(self.path))
            self.signals.finished.emit(members)
        except FormatError as e:
            self.signals.error.emit(str(e))
        except Exception as e:
            logger.exception("%s failed", type(self).__name__)
            self.signals.error.emit(f"Lỗi không xác định: {e}")
