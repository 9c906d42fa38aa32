from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping as AbcMapping
from contextlib import contextmanager
from enum import Enum

from ..config.loader import DEFAULT_OPEN_FILTERS, DEFAULT_OUTPUT_NAME, DEFAULT_SAVE_FILTERS
from ..errors import (
    CollaboratorError,
    InvalidMappingError,
    TransitionBusyError,
    TransitionNotAllowedError,
    UserCancelled,
)
from ..models.conversion import ConversionResult, SessionState
from ..models.mapping import ColumnDescriptor, FieldSelection, Mapping
from .collaborators import DialogService, FileFilter, SpreadsheetBackend
from .mapping_builder import build_mapping
from .status import StatusChannel

"""Import session: the select / map / convert / merge / export state machine.

One ImportSession holds the whole working state of the application: the
selected file, its columns, the applied mapping and the latest result. Every
user action is an async method with a precondition:

    select_file(path)          any state          -> COLUMNS_LOADED
    apply_mapping(selections)  columns loaded     -> MAPPED -> CONVERTED
    merge_duplicates()         result has dups    -> MERGED
    export_to(path)            result present     (no state change)
    cancel_mapping()           editor open        (editor closed)

Durable fields are only written after the awaited backend call returned, in
one synchronous block, so a failed call leaves them exactly as they were and
an observer never sees them half-updated. Backend failures are turned into an
error status line, not raised.
"""

__all__ = [
    "Transition",
    "ImportSession",
]

logger = logging.getLogger(__name__)


class Transition(Enum):
    SELECT_FILE = "select_file"
    APPLY_MAPPING = "apply_mapping"
    MERGE_DUPLICATES = "merge_duplicates"
    EXPORT = "export"


class ImportSession:
    """Working state of one import plus the transitions that change it."""

    def __init__(
        self,
        backend: SpreadsheetBackend,
        *,
        dialogs: DialogService | None = None,
        status: StatusChannel | None = None,
        open_filters: tuple[FileFilter, ...] = DEFAULT_OPEN_FILTERS,
        save_filters: tuple[FileFilter, ...] = DEFAULT_SAVE_FILTERS,
        default_output_name: str = DEFAULT_OUTPUT_NAME,
    ) -> None:
        self._backend = backend
        self._dialogs = dialogs
        self.status = status or StatusChannel()
        self.open_filters = open_filters
        self.save_filters = save_filters
        self.default_output_name = default_output_name

        self._file_path: str | None = None
        self._columns: tuple[ColumnDescriptor, ...] = ()
        self._mapping: Mapping | None = None
        self._result: ConversionResult | None = None
        self._merged = False
        self._composing = False  # mapping editor open

        self._pending_mapping: Mapping | None = None
        self._busy: set[Transition] = set()
        # bumped on every committed file selection; results computed for an
        # older selection are dropped
        self._generation = 0

    # --- read-only state ---

    @property
    def file_path(self) -> str | None:
        return self._file_path

    @property
    def columns(self) -> tuple[ColumnDescriptor, ...]:
        return self._columns

    @property
    def mapping(self) -> Mapping | None:
        return self._mapping

    @property
    def result(self) -> ConversionResult | None:
        return self._result

    @property
    def composing_mapping(self) -> bool:
        return self._composing

    @property
    def state(self) -> SessionState:
        if self._pending_mapping is not None:
            return SessionState.MAPPED
        if self._result is not None:
            return SessionState.MERGED if self._merged else SessionState.CONVERTED
        if self._columns:
            return SessionState.COLUMNS_LOADED
        return SessionState.EMPTY

    def is_busy(self, transition: Transition) -> bool:
        return transition in self._busy

    @contextmanager
    def _running(self, transition: Transition) -> Iterator[None]:
        if transition in self._busy:
            raise TransitionBusyError(f"{transition.value} is already in progress")
        self._busy.add(transition)
        try:
            yield
        finally:
            self._busy.discard(transition)

    # --- transitions ---

    async def select_file(self, path: str) -> bool:
        """Load the column list of ``path``.

        On success the previous mapping and result are discarded and the
        mapping editor opens. On failure nothing durable changes.
        """
        with self._running(Transition.SELECT_FILE):
            self.status.loading("正在读取列信息...")
            try:
                columns = await self._backend.read_columns(path)
            except CollaboratorError as e:
                self.status.error(f"读取失败: {e}")
                return False

            self._file_path = path
            self._columns = tuple(columns)
            self._mapping = None
            self._result = None
            self._merged = False
            self._composing = True
            self._generation += 1
            logger.debug("loaded %d columns from %s", len(self._columns), path)
            self.status.success("请配置列映射")
            return True

    async def apply_mapping(self, selections: AbcMapping[str, FieldSelection]) -> bool:
        """Build a Mapping from ``selections`` and convert the selected file.

        Raises:
            TransitionNotAllowedError: no columns loaded
            TransitionBusyError: a conversion is already running
        """
        if not self._columns or self._file_path is None:
            raise TransitionNotAllowedError("no columns loaded; select a file first")
        with self._running(Transition.APPLY_MAPPING):
            try:
                mapping = build_mapping(selections, self._columns)
            except InvalidMappingError as e:
                self.status.error(f"映射无效: {e}")
                return False

            path = self._file_path
            generation = self._generation
            self._pending_mapping = mapping
            self.status.loading("正在转换文件...")
            try:
                result = await self._backend.convert_with_mapping(path, mapping)
            except CollaboratorError as e:
                self.status.error(f"转换失败: {e}")
                return False
            finally:
                self._pending_mapping = None

            if generation != self._generation:
                logger.warning("discarding conversion of %s: file selection changed", path)
                return False

            self._mapping = mapping
            self._result = result
            self._merged = False
            self._composing = False
            self.status.success(f"文件读取成功，共转换 {result.total_rows} 条数据")
            return True

    async def merge_duplicates(self) -> bool:
        """Ask the backend to merge the duplicate groups of its held result.

        Raises:
            TransitionNotAllowedError: the current result reports no duplicates
            TransitionBusyError: a merge is already running
        """
        if self._result is None or not self._result.has_duplicates:
            raise TransitionNotAllowedError("current result has no duplicates to merge")
        with self._running(Transition.MERGE_DUPLICATES):
            generation = self._generation
            self.status.loading("正在合并重复项...")
            try:
                result = await self._backend.merge_duplicates()
            except CollaboratorError as e:
                self.status.error(f"合并失败: {e}")
                return False

            if generation != self._generation:
                logger.warning("discarding merge result: file selection changed")
                return False

            self._result = result
            self._merged = True
            self.status.success(f"合并完成，当前共 {result.total_rows} 条数据")
            return True

    async def export_to(self, output_path: str) -> bool:
        """Write the backend's held result to ``output_path``.

        Raises:
            TransitionNotAllowedError: nothing has been converted yet
            TransitionBusyError: an export is already running
        """
        if self._result is None:
            raise TransitionNotAllowedError("nothing to export; convert a file first")
        with self._running(Transition.EXPORT):
            self.status.loading("正在导出...")
            try:
                message = await self._backend.export_file(output_path)
            except CollaboratorError as e:
                self.status.error(f"导出失败: {e}")
                return False
            self.status.success(message)
            return True

    def cancel_mapping(self) -> None:
        if not self._composing or self.state is not SessionState.COLUMNS_LOADED:
            raise TransitionNotAllowedError("no mapping is being composed")
        self._composing = False
        self.status.clear()

    # --- dialog driven variants ---

    def _require_dialogs(self) -> DialogService:
        if self._dialogs is None:
            raise TransitionNotAllowedError("no dialog service configured")
        return self._dialogs

    @staticmethod
    def _require_path(path: str | None) -> str:
        if not path:
            raise UserCancelled()
        return path

    async def choose_file(self) -> bool:
        """Ask the host open dialog for a file, then select it.

        Returns False without touching the session when the user cancels.
        """
        dialogs = self._require_dialogs()
        try:
            path = self._require_path(dialogs.select_open_path(self.open_filters))
        except UserCancelled:
            logger.debug("file selection cancelled")
            return False
        return await self.select_file(path)

    async def choose_export_path(self) -> bool:
        if self._result is None:
            raise TransitionNotAllowedError("nothing to export; convert a file first")
        dialogs = self._require_dialogs()
        try:
            path = self._require_path(
                dialogs.select_save_path(self.default_output_name, self.save_filters)
            )
        except UserCancelled:
            logger.debug("export cancelled")
            return False
        return await self.export_to(path)
