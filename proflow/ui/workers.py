"""Background workers that run generation and bundling off the GUI thread.

Each runnable reports through its own ``signals`` object, so a window can
connect to ``finished`` and ``error`` before handing it to the thread pool.
"""

from typing import List, Optional

from PyQt6.QtCore import QObject, QRunnable, QThreadPool, pyqtSignal

from ..logging_config import get_logger
from ..services.playlist_bundler import BundleEntry, PlaylistBundler
from ..services.presentation_generator import GenerationRequest, PresentationGenerator

logger = get_logger("workers")


class WorkerSignals(QObject):
    """Signals for background workers."""
    finished = pyqtSignal(object)  # GenerationResult or bundle path
    error = pyqtSignal(str)  # message


class GenerationRunnable(QRunnable):
    """Generates and writes one presentation in the background."""

    def __init__(self, generator: PresentationGenerator, request: GenerationRequest,
                 output_path: str):
        super().__init__()
        self.generator = generator
        self.request = request
        self.output_path = output_path
        self.signals = WorkerSignals()

    def run(self):
        try:
            result = self.generator.write(self.request, self.output_path)
        except Exception as e:
            logger.error(f"Generating '{self.request.title}' failed: {e}", exc_info=True)
            self.signals.error.emit(str(e))
            return
        self.signals.finished.emit(result)


class BundleRunnable(QRunnable):
    """Writes a playlist bundle in the background."""

    def __init__(self, bundler: PlaylistBundler, entries: List[BundleEntry], path: str,
                 name: Optional[str] = None):
        super().__init__()
        self.bundler = bundler
        self.entries = entries
        self.path = path
        self.name = name
        self.signals = WorkerSignals()

    def run(self):
        try:
            path = self.bundler.write_bundle(self.entries, self.path, self.name)
        except Exception as e:
            logger.error(f"Writing playlist {self.path} failed: {e}", exc_info=True)
            self.signals.error.emit(str(e))
            return
        self.signals.finished.emit(path)


def submit(runnable: QRunnable, pool: Optional[QThreadPool] = None) -> None:
    """Start a runnable on the given pool, or the global one."""
    (pool or QThreadPool.globalInstance()).start(runnable)
