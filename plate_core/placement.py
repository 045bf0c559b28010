"""Placement and collision resolution for files on the 96-well grid.

Files are placed strictly in list order: a file's placement depends only on
the files before it. A file whose requested start well runs past H12 or
overlaps an earlier file is moved to the first free window that fits.
"""

import logging
from dataclasses import dataclass, field

from .types import GRID_SIZE, PlateFile
from .wells import ALL_WELLS, index_to_well, well_to_index

logger = logging.getLogger(__name__)

# Reasons a start well cannot be chosen
OCCUPIED = "occupied"  # The start slot itself belongs to a preceding file
NO_SPACE = "no_space"  # Not enough wells left before H12
OVERLAP = "overlap"  # A later slot of the block belongs to a preceding file


def block_slots(file: PlateFile, sheet_index: int) -> range:
    """Linear indices a file occupies at its current start well."""
    start = well_to_index(file.start_well)
    return range(start, start + file.capped_length(sheet_index))


def occupied_slots(files: list[PlateFile], upto_index: int, sheet_index: int) -> set[int]:
    """Slots taken by all files strictly before ``upto_index``."""
    occupied = set()
    for prev in files[:upto_index]:
        occupied.update(i for i in block_slots(prev, sheet_index) if i < GRID_SIZE)
    return occupied


def is_valid_placement(occupied: set[int], start: int, length: int) -> bool:
    """Check a block against the grid boundary and the occupied slots."""
    if start + length > GRID_SIZE:
        return False
    return not any(start + j in occupied for j in range(length))


def first_fit(occupied: set[int], length: int) -> str | None:
    """First start well with ``length`` free consecutive slots, or None."""
    start = 0
    while start <= GRID_SIZE - length:
        for j in range(length):
            if start + j in occupied:
                # Skip past the slot that caused the collision
                start = start + j + 1
                break
        else:
            return index_to_well(start)
    return None


def validate_and_correct(files: list[PlateFile], index: int, sheet_index: int) -> set[int]:
    """Validate the file at ``index`` and move it to a free window if needed.

    Mutates ``files[index].start_well``. When no window fits, the start well
    is left unchanged and the file stays unplaceable.

    Returns:
        Slots occupied by the files before ``index``
    """
    occupied = occupied_slots(files, index, sheet_index)
    current = files[index]
    length = current.capped_length(sheet_index)
    if length == 0:
        return occupied

    if not is_valid_placement(occupied, well_to_index(current.start_well), length):
        available = first_fit(occupied, length)
        if available and available != current.start_well:
            logger.warning(
                f"Collision or boundary violation for {current.name}: "
                f"moving start well from {current.start_well} to {available} (file {index + 1})"
            )
            current.start_well = available
    return occupied


def resolve_placements(files: list[PlateFile], sheet_index: int) -> list[PlateFile]:
    """Return corrected copies of ``files``; the input list is not modified."""
    resolved = [f.copy() for f in files]
    for index in range(len(resolved)):
        validate_and_correct(resolved, index, sheet_index)
    return resolved


@dataclass
class WellOption:
    """One start-well choice for a file."""

    well: str
    enabled: bool
    reason: str | None = None


@dataclass
class PlacementStatus:
    """Placement summary for one file, in file order."""

    file_id: str
    name: str
    start_well: str
    length: int  # Capped length
    data_rows: int  # Uncapped count
    placed: bool  # Holds a valid window
    disabled: bool  # Placement control cannot be used
    well_options: list[WellOption] = field(default_factory=list)


def well_options(occupied: set[int], length: int) -> list[WellOption]:
    """Selectable start wells for a block of ``length`` given earlier files."""
    options = []
    for start, well in enumerate(ALL_WELLS):
        reason = None
        if start in occupied:
            reason = OCCUPIED
        elif start + length > GRID_SIZE:
            reason = NO_SPACE
        elif any(start + j in occupied for j in range(length)):
            reason = OVERLAP
        options.append(WellOption(well=well, enabled=reason is None, reason=reason))
    return options


def placement_report(files: list[PlateFile], sheet_index: int) -> list[PlacementStatus]:
    """Describe the placement of already resolved files."""
    report = []
    for index, file in enumerate(files):
        occupied = occupied_slots(files, index, sheet_index)
        length = file.capped_length(sheet_index)
        placed = length > 0 and is_valid_placement(occupied, well_to_index(file.start_well), length)
        report.append(
            PlacementStatus(
                file_id=file.file_id,
                name=file.name,
                start_well=file.start_well,
                length=length,
                data_rows=file.data_row_count(sheet_index),
                placed=placed,
                disabled=length == 0 or first_fit(occupied, length) is None,
                well_options=well_options(occupied, length),
            )
        )
    return report
