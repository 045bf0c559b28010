"""
plate_core - Spreadsheet to 96-well plate merging library

Places rows from several spreadsheet files onto a 96-well plate, resolves
placement conflicts between files, and builds a well-aligned export table
and an 8x12 preview. Designed for use with various frontends (FastAPI, etc.).
"""

__version__ = "0.1.0"

# Types
from .types import GRID_COLS, GRID_ROWS, GRID_SIZE, ROW_LABELS, PlateFile, is_row_empty

# Wells and columns
from .wells import ALL_WELLS, index_to_well, is_valid_well, normalize_well, well_to_index
from .columns import column_label, column_letter, column_options, display_name

# Placement
from .placement import (
    PlacementStatus,
    WellOption,
    first_fit,
    is_valid_placement,
    occupied_slots,
    placement_report,
    resolve_placements,
    validate_and_correct,
)

# Merge
from .merge import Diagnostic, ExportRecord, MergeResult, PreviewCell, merge_files

# Parsers
from .parsers import SUPPORTED_EXTENSIONS, load_file, load_file_bytes, parse_batch

# Export
from .export import (
    EXPORT_FORMATS,
    build_export_table,
    export_csv,
    export_filename,
    export_frame,
    export_xlsx,
)

# Session
from .session import PlateSession, PlateSnapshot

__all__ = [
    "__version__",
    # Types
    "GRID_COLS",
    "GRID_ROWS",
    "GRID_SIZE",
    "ROW_LABELS",
    "PlateFile",
    "is_row_empty",
    # Wells and columns
    "ALL_WELLS",
    "index_to_well",
    "is_valid_well",
    "normalize_well",
    "well_to_index",
    "column_label",
    "column_letter",
    "column_options",
    "display_name",
    # Placement
    "PlacementStatus",
    "WellOption",
    "first_fit",
    "is_valid_placement",
    "occupied_slots",
    "placement_report",
    "resolve_placements",
    "validate_and_correct",
    # Merge
    "Diagnostic",
    "ExportRecord",
    "MergeResult",
    "PreviewCell",
    "merge_files",
    # Parsers
    "SUPPORTED_EXTENSIONS",
    "load_file",
    "load_file_bytes",
    "parse_batch",
    # Export
    "EXPORT_FORMATS",
    "build_export_table",
    "export_csv",
    "export_filename",
    "export_frame",
    "export_xlsx",
    # Session
    "PlateSession",
    "PlateSnapshot",
]
