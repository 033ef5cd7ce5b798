"""Pipeline orchestration: one regeneration in flight, whole-document replacement."""

from __future__ import annotations

import asyncio
import functools
import logging
import threading
from pathlib import Path
from typing import Callable, List, Optional

from .analyzer import CodebaseAnalyzer
from .config import CONFIG_FILENAME, DocumentorConfig, load_config
from .generators import DocumentationGenerator
from .logging import ProgressCallback, get_logger, progress_sink
from .models import CodebaseAnalysis, GeneratedDocumentation
from .stores import DocumentationStore

Observer = Callable[[GeneratedDocumentation], None]


class RegenerationInProgressError(RuntimeError):
    """Raised when a non-waiting regeneration finds the pipeline busy."""


class Orchestrator:
    """Coordinates analysis, generation, persistence, and change notification."""

    def __init__(
        self,
        root: str | Path = ".",
        config: DocumentorConfig | None = None,
        *,
        output_dir: Path | None = None,
        analyzer: CodebaseAnalyzer | None = None,
        generator: DocumentationGenerator | None = None,
        store: DocumentationStore | None = None,
    ) -> None:
        self.root = Path(root).expanduser().resolve()
        self.logger = get_logger("orchestrator")
        self.generator = generator or DocumentationGenerator()
        self._config = config
        self._output_dir = output_dir
        self._analyzer = analyzer
        self._store = store
        self._store_injected = store is not None
        self._lock = threading.Lock()
        self._observers_lock = threading.Lock()
        self._observers: List[Observer] = []
        self._notify_thread: Optional[threading.Thread] = None

    # ------------------------------------------------------------------
    # Public API

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    def regenerate(
        self, progress: ProgressCallback | None = None, *, wait: bool = True
    ) -> GeneratedDocumentation:
        """Run the full pipeline and replace the stored documentation.

        With ``wait=False`` a request arriving while another regeneration is
        running raises :class:`RegenerationInProgressError` instead of queueing.
        """
        if not self._lock.acquire(blocking=wait):
            raise RegenerationInProgressError("A documentation regeneration is already running")
        try:
            documentation = self._run(progress)
        finally:
            self._lock.release()
        self._notify(documentation)
        return documentation

    async def regenerate_async(
        self, progress: ProgressCallback | None = None, *, wait: bool = True
    ) -> GeneratedDocumentation:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, functools.partial(self.regenerate, progress, wait=wait)
        )

    def analyze(self, progress: ProgressCallback | None = None) -> CodebaseAnalysis:
        """Analyze the project without generating or saving documentation."""
        config = self.config()
        config.validate()
        return self._analyzer_for(config).analyze(config.root, progress)

    def load(self) -> Optional[GeneratedDocumentation]:
        return self._store_for(self.config()).load()

    def load_or_generate(self, progress: ProgressCallback | None = None) -> GeneratedDocumentation:
        documentation = self.current() or self.load()
        if documentation is not None:
            return documentation
        return self.regenerate(progress)

    def current(self) -> Optional[GeneratedDocumentation]:
        if self._store is None:
            return None
        return self._store.current()

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register ``observer`` for completed regenerations; returns an unsubscribe callable."""
        with self._observers_lock:
            self._observers.append(observer)

        def _unsubscribe() -> None:
            with self._observers_lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return _unsubscribe

    def wait_for_notifications(self, timeout: float | None = None) -> None:
        thread = self._notify_thread
        if thread is not None:
            thread.join(timeout)

    def config(self) -> DocumentorConfig:
        if self._config is not None:
            return self._config
        return load_config(self.root / CONFIG_FILENAME, output_dir=self._output_dir)

    # ------------------------------------------------------------------
    # Internal helpers

    def _run(self, progress: ProgressCallback | None) -> GeneratedDocumentation:
        emit = progress_sink(progress, self.logger)
        config = self.config()
        config.validate()
        self.logger.info("Regenerating documentation for %s", config.root)

        try:
            analysis = self._analyzer_for(config).analyze(config.root, progress)
            documentation = self.generator.generate(analysis, progress)
            emit("Saving documentation...")
            path = self._store_for(config).save(documentation)
        except Exception as exc:
            self._log_exception("Documentation regeneration failed", exc)
            raise
        emit(f"Documentation saved to {path}")
        return documentation

    def _analyzer_for(self, config: DocumentorConfig) -> CodebaseAnalyzer:
        if self._analyzer is not None:
            return self._analyzer
        return CodebaseAnalyzer.from_config(config)

    def _store_for(self, config: DocumentorConfig) -> DocumentationStore:
        if self._store is not None and self._store_injected:
            return self._store
        output_dir = Path(config.output_dir).resolve()
        if self._store is None or self._store.output_dir.resolve() != output_dir:
            self._store = DocumentationStore(output_dir)
        return self._store

    def _notify(self, documentation: GeneratedDocumentation) -> None:
        with self._observers_lock:
            observers = list(self._observers)
        if not observers:
            return

        def _worker() -> None:
            for observer in observers:
                try:
                    observer(documentation)
                except Exception as exc:  # noqa: BLE001
                    self.logger.warning("Documentation observer failed: %s", exc)

        thread = threading.Thread(target=_worker, name="documentor-notify", daemon=True)
        self._notify_thread = thread
        thread.start()

    def _log_exception(self, message: str, exc: Exception) -> None:
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.exception("%s: %s", message, exc)
        else:
            self.logger.error("%s: %s", message, exc)


__all__ = ["Observer", "Orchestrator", "RegenerationInProgressError"]
