"""Plate session: the file list, the two selectors and the merged view.

Every mutation goes through ``_update``, which re-resolves placements and
re-runs the merge while holding the session lock, so no reader ever sees a
file list that was changed but not yet resolved.
"""

import logging
from dataclasses import dataclass, field
from threading import Lock
from typing import Callable

from .config import settings
from .merge import MergeResult, merge_files
from .placement import PlacementStatus, placement_report, resolve_placements
from .types import PlateFile
from .wells import normalize_well

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlateSnapshot:
    """Consistent view published after each update."""

    files: tuple[PlateFile, ...]
    sheet_index: int
    column_index: int
    placements: tuple[PlacementStatus, ...]
    merge: MergeResult


@dataclass
class PlateSession:
    """Single-plate working state for one user."""

    sheet_index: int = field(default_factory=lambda: settings.default_sheet_index)
    column_index: int = field(default_factory=lambda: settings.default_column_index)
    files: list[PlateFile] = field(default_factory=list)

    def __post_init__(self):
        self._lock = Lock()
        self._snapshot = self._compute()

    # --- Reading ---

    @property
    def snapshot(self) -> PlateSnapshot:
        with self._lock:
            return self._snapshot

    @property
    def file_count(self) -> int:
        return len(self.files)

    def get_file(self, file_id: str) -> PlateFile:
        """Look up a file by id.

        Raises:
            KeyError: If no file has this id
        """
        for file in self.files:
            if file.file_id == file_id:
                return file
        raise KeyError(file_id)

    # --- Mutations ---

    def add_files(self, new_files: list[PlateFile], max_files: int | None = None) -> PlateSnapshot:
        """Append a fully parsed batch, then resolve once.

        Args:
            new_files: Parsed files in upload order
            max_files: Session file limit. Files past it are left out; the
                returned snapshot lists the ones that were added.
        """

        def mutate():
            batch = new_files
            if max_files is not None:
                batch = new_files[: max(0, max_files - len(self.files))]
                if len(batch) < len(new_files):
                    logger.warning(
                        f"File limit {max_files} reached, "
                        f"{len(new_files) - len(batch)} file(s) not added"
                    )
            self.files.extend(batch)

        return self._update(mutate)

    def remove_file(self, file_id: str) -> PlateSnapshot:
        def mutate():
            self.files.remove(self.get_file(file_id))

        return self._update(mutate)

    def set_start_well(self, file_id: str, well: str) -> PlateSnapshot:
        """Request a start well; it may be corrected by resolution."""

        def mutate():
            self.get_file(file_id).start_well = normalize_well(well)

        return self._update(mutate)

    def move_file(self, file_id: str, new_position: int) -> PlateSnapshot:
        """Move a file to another position in the list (changes placement order)."""

        def mutate():
            file = self.get_file(file_id)
            self.files.remove(file)
            position = max(0, min(new_position, len(self.files)))
            self.files.insert(position, file)

        return self._update(mutate)

    def set_selection(
        self,
        sheet_index: int | None = None,
        column_index: int | None = None,
    ) -> PlateSnapshot:
        """Change the active sheet and/or the preview column in one update.

        Raises:
            ValueError: If either index is negative (nothing is changed)
        """
        for name, value in (("Sheet", sheet_index), ("Column", column_index)):
            if value is not None and value < 0:
                raise ValueError(f"{name} index must be >= 0, got {value}")

        def mutate():
            if sheet_index is not None:
                self.sheet_index = sheet_index
            if column_index is not None:
                self.column_index = column_index

        return self._update(mutate)

    def set_sheet_index(self, sheet_index: int) -> PlateSnapshot:
        return self.set_selection(sheet_index=sheet_index)

    def set_column_index(self, column_index: int) -> PlateSnapshot:
        return self.set_selection(column_index=column_index)

    def clear(self) -> PlateSnapshot:
        return self._update(self.files.clear)

    def recompute(self) -> PlateSnapshot:
        """Re-run resolution and merge without changing anything."""
        return self._update(lambda: None)

    # --- Internals ---

    def _update(self, mutate: Callable[[], None]) -> PlateSnapshot:
        with self._lock:
            mutate()
            self._snapshot = self._compute()
            return self._snapshot

    def _compute(self) -> PlateSnapshot:
        resolved = resolve_placements(self.files, self.sheet_index)
        # Keep corrected wells on the stored records
        for file, fixed in zip(self.files, resolved):
            file.start_well = fixed.start_well

        merge = merge_files(resolved, self.sheet_index, self.column_index)
        logger.debug(
            f"Merged {len(resolved)} file(s) on sheet {self.sheet_index + 1}: "
            f"{merge.populated_cells} preview cell(s), {len(merge.records)} record(s)"
        )
        return PlateSnapshot(
            files=tuple(resolved),
            sheet_index=self.sheet_index,
            column_index=self.column_index,
            placements=tuple(placement_report(resolved, self.sheet_index)),
            merge=merge,
        )
