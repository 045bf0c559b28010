"""FastAPI backend for plate-merger with multi-user session support."""

import io
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import Cookie, Depends, FastAPI, HTTPException, Request, Response, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from plate_core import (
    EXPORT_FORMATS,
    SUPPORTED_EXTENSIONS,
    PlateSnapshot,
    column_options,
    export_csv,
    export_filename,
    export_xlsx,
    is_valid_well,
    parse_batch,
)
from plate_core.config import settings
from plate_core.export import cell_text
from plate_core.merge import MISSING_SHEET, OVERFLOW, column_display

from backend.state import (
    MAX_FILE_SIZE_MB,
    MAX_FILES,
    SESSION_TTL_HOURS,
    SessionState,
    session_manager,
)

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Cookie settings
SESSION_COOKIE_NAME = "plate_session_id"
SESSION_COOKIE_MAX_AGE = SESSION_TTL_HOURS * 60 * 60  # Convert to seconds

# Background colors for each file's wells, cycled by file position
FILE_COLORS = [
    "#e0f2fe",  # sky
    "#ecfccb",  # lime
    "#fef3c7",  # amber
    "#ffe4e6",  # rose
    "#fae8ff",  # fuchsia
    "#ccfbf1",  # teal
    "#ffedd5",  # orange
    "#ede9fe",  # violet
]

EXPORT_MEDIA_TYPES = {
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "csv": "text/csv",
}


# ============== Lifespan (startup/shutdown) ==============

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan - start/stop background cleanup task."""
    await session_manager.start_cleanup_task()
    logger.info(f"Session cleanup task started (TTL: {SESSION_TTL_HOURS}h)")
    yield
    await session_manager.stop_cleanup_task()
    logger.info("Session cleanup task stopped")


app = FastAPI(title="Plate Merger API", lifespan=lifespan)

# CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://localhost:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============== Session Dependency ==============

def get_session(
    request: Request,
    response: Response,
    plate_session_id: Optional[str] = Cookie(default=None, alias=SESSION_COOKIE_NAME),
) -> SessionState:
    """Get or create session from cookie. Sets cookie if new session created."""
    session_id, session = session_manager.get_or_create_session(plate_session_id)

    if session_id != plate_session_id:
        response.set_cookie(
            key=SESSION_COOKIE_NAME,
            value=session_id,
            max_age=SESSION_COOKIE_MAX_AGE,
            httponly=True,
            samesite="lax",
            secure=False,  # Set to True in production with HTTPS
        )

    return session


# ============== Pydantic Models ==============

class WellOptionInfo(BaseModel):
    """One entry of a file's start-well dropdown."""
    well: str
    enabled: bool
    reason: str | None = None


class FileInfo(BaseModel):
    """File information returned to client."""
    file_id: str
    name: str
    start_well: str
    samples: int  # Non-empty data rows in the active sheet (uncapped)
    length: int  # Wells needed (capped at 96)
    sheet_name: str
    source: str | None
    color: str
    placed: bool
    disabled: bool
    well_options: list[WellOptionInfo] = []


class UploadResponse(BaseModel):
    """Response from file upload."""
    files: list[FileInfo]
    errors: list[str] = []  # Files that failed to upload with error messages


class StartWellUpdate(BaseModel):
    well: str


class OrderUpdate(BaseModel):
    """Move a file to a new position in the placement order."""
    position: int


class SelectionUpdate(BaseModel):
    """Active sheet and preview column, both zero-based."""
    sheet_index: int | None = None
    column_index: int | None = None


class ColumnOptionInfo(BaseModel):
    index: int
    label: str


class PreviewCellInfo(BaseModel):
    value: str
    source_file_id: str | None = None
    color: str | None = None


class PreviewResponse(BaseModel):
    """8x12 preview grid (rows A-H, columns 1-12) plus messages."""
    sheet_index: int
    column_index: int
    column_name: str
    columns: list[ColumnOptionInfo]
    grid: list[list[PreviewCellInfo]] | None = None
    message: str | None = None  # Replaces the grid when set
    warnings: list[str] = []
    total_samples: int = 0
    populated_cells: int = 0
    export_header: list[str] = []


# ============== Endpoints ==============

@app.get("/api/health")
def health():
    """Health check."""
    stats = session_manager.get_stats()
    return {"status": "ok", **stats}


@app.get("/stats")
def get_stats(session: SessionState = Depends(get_session)):
    """Get session statistics for monitoring."""
    return {
        "file_count": session.file_count,
        "max_files": MAX_FILES,
        "files_remaining": session.files_remaining(),
        "max_file_size_mb": MAX_FILE_SIZE_MB,
        "session_id": session.session_id[:8],  # Show partial ID for debugging
    }


@app.post("/upload")
async def upload_files(
    files: list[UploadFile],
    session: SessionState = Depends(get_session),
) -> UploadResponse:
    """Upload spreadsheet files. Continues on individual file failures.

    All files of the request are read and parsed before any of them is
    added, so placement is resolved once over the complete batch.
    """
    errors = []
    uploads = []

    remaining = session.files_remaining()
    if remaining == 0:
        raise HTTPException(
            status_code=400,
            detail=f"File limit reached ({MAX_FILES} files). Delete some files to upload more."
        )

    for file in files:
        content = await file.read()
        filename = file.filename or "unknown"

        file_size_mb = len(content) / (1024 * 1024)
        if file_size_mb > MAX_FILE_SIZE_MB:
            errors.append(f"{filename}: Too large ({file_size_mb:.1f}MB, max {MAX_FILE_SIZE_MB}MB)")
            continue

        ext = Path(filename).suffix.lower()
        if ext not in SUPPORTED_EXTENSIONS:
            errors.append(f"{filename}: Invalid file type {ext}")
            continue

        if len(uploads) >= remaining:
            errors.append(f"{filename}: File limit reached")
            continue

        uploads.append((filename, content))

    parsed, parse_errors = await run_in_threadpool(parse_batch, uploads)
    errors.extend(parse_errors)

    # The limit is checked again under the session lock; a concurrent upload may have filled it
    snapshot = session.plate.add_files(parsed, max_files=MAX_FILES)
    stored_ids = {f.file_id for f in snapshot.files}
    errors.extend(f"{f.name}: File limit reached" for f in parsed if f.file_id not in stored_ids)

    added_ids = {f.file_id for f in parsed}
    added = [info for info in _file_infos(snapshot) if info.file_id in added_ids]
    logger.info(f"Session {session.session_id[:8]}: added {len(added)} file(s), {len(errors)} error(s)")

    return UploadResponse(files=added, errors=errors)


@app.get("/files")
def list_files(session: SessionState = Depends(get_session)) -> list[FileInfo]:
    """List all loaded files in placement order."""
    return _file_infos(session.plate.snapshot)


@app.delete("/files/{file_id}")
def delete_file(file_id: str, session: SessionState = Depends(get_session)):
    """Remove a file from the session; later files are re-placed."""
    try:
        session.plate.remove_file(file_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"File not found: {file_id}")
    return {"status": "deleted", "file_id": file_id}


@app.patch("/files/{file_id}/start-well")
def update_start_well(
    file_id: str,
    update: StartWellUpdate,
    session: SessionState = Depends(get_session),
) -> FileInfo:
    """Request a start well. The returned well may have been auto-corrected."""
    if not is_valid_well(update.well):
        raise HTTPException(status_code=400, detail=f"Invalid well: {update.well}")
    try:
        snapshot = session.plate.set_start_well(file_id, update.well)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"File not found: {file_id}")
    return next(info for info in _file_infos(snapshot) if info.file_id == file_id)


@app.post("/files/{file_id}/order")
def move_file(
    file_id: str,
    update: OrderUpdate,
    session: SessionState = Depends(get_session),
) -> list[FileInfo]:
    """Move a file within the list; placement follows list order."""
    try:
        snapshot = session.plate.move_file(file_id, update.position)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"File not found: {file_id}")
    return _file_infos(snapshot)


@app.put("/selection")
def update_selection(
    update: SelectionUpdate,
    session: SessionState = Depends(get_session),
) -> PreviewResponse:
    """Change the active sheet and/or the preview column."""
    try:
        snapshot = session.plate.set_selection(update.sheet_index, update.column_index)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _preview(snapshot)


@app.get("/preview")
def get_preview(session: SessionState = Depends(get_session)) -> PreviewResponse:
    """Get the 8x12 preview of the selected column."""
    return _preview(session.plate.snapshot)


@app.get("/export")
def export_plate(
    format: str = "xlsx",
    session: SessionState = Depends(get_session),
):
    """Download the 96-row export table of the active sheet."""
    if format not in EXPORT_FORMATS:
        raise HTTPException(status_code=400, detail=f"Unsupported export format: {format}")

    snapshot = session.plate.snapshot
    if not snapshot.files:
        raise HTTPException(status_code=400, detail="No files loaded for export")

    missing = snapshot.merge.diagnostic(MISSING_SHEET)
    if missing:
        raise HTTPException(status_code=400, detail=missing.message)

    files = list(snapshot.files)
    if format == "csv":
        content = export_csv(files, snapshot.merge)
    else:
        content = export_xlsx(files, snapshot.merge)
    filename = export_filename(snapshot.sheet_index, format)

    return StreamingResponse(
        io.BytesIO(content),
        media_type=EXPORT_MEDIA_TYPES[format],
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )


# ============== Helpers ==============

def _file_color(file_index: int | None) -> str | None:
    if file_index is None:
        return None
    return FILE_COLORS[file_index % len(FILE_COLORS)]


def _file_infos(snapshot: PlateSnapshot) -> list[FileInfo]:
    """Convert a snapshot's files and placements to FileInfo responses."""
    infos = []
    for index, (file, status) in enumerate(zip(snapshot.files, snapshot.placements)):
        infos.append(
            FileInfo(
                file_id=file.file_id,
                name=file.name,
                start_well=status.start_well,
                samples=status.data_rows,
                length=status.length,
                sheet_name=file.sheet_name(snapshot.sheet_index),
                source=file.source_format,
                color=_file_color(index),
                placed=status.placed,
                disabled=status.disabled,
                well_options=[
                    WellOptionInfo(well=o.well, enabled=o.enabled, reason=o.reason)
                    for o in status.well_options
                ],
            )
        )
    return infos


def _preview(snapshot: PlateSnapshot) -> PreviewResponse:
    """Convert a snapshot's merge result to a PreviewResponse."""
    merge = snapshot.merge
    headers = merge.column_headers if snapshot.files else []

    message = None
    warnings = []
    for diagnostic in merge.diagnostics:
        if diagnostic.blocking_preview:
            message = diagnostic.message
        elif diagnostic.kind == OVERFLOW:
            warnings.append(diagnostic.message)

    grid = None
    if merge.has_preview:
        grid = [
            [
                PreviewCellInfo(
                    value=cell_text(cell.value),
                    source_file_id=cell.source_file_id,
                    color=_file_color(cell.file_index),
                )
                for cell in row
            ]
            for row in merge.preview_rows()
        ]

    return PreviewResponse(
        sheet_index=snapshot.sheet_index,
        column_index=snapshot.column_index,
        column_name=column_display(headers, snapshot.column_index),
        columns=[ColumnOptionInfo(index=i, label=label) for i, label in column_options(headers)],
        grid=grid,
        message=message,
        warnings=warnings,
        total_samples=merge.total_samples,
        populated_cells=merge.populated_cells,
        export_header=[cell_text(h) for h in merge.export_header] if snapshot.files else [],
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=settings.port)
