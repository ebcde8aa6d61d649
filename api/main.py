# ============================================================================
# api/main.py
# ============================================================================
"""
FastAPI Backend for MediVision

REST surface over the reconciliation pipeline and review workflow:
upload images, review/edit/move, approve, translate, print, browse history.

One active review session per process (single reviewer).
"""

import logging
from typing import Any, List, Optional

from fastapi import Depends, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel

from medivision.config import base_settings, logging_settings
from medivision.core.history_store import SQLiteHistoryStore
from medivision.core.pipeline import ReconciliationPipeline
from medivision.core.profile_store import PatientProfile, ProfileStore
from medivision.core.workflow import ReviewSession
from medivision.extraction.base import ALLOWED_MIME_TYPES, ImagePayload
from medivision.extraction.ollama_client import OllamaVisionClient
from medivision.extraction.translation import TranslatedContent
from medivision.report.report_builder import build_report, render_html, report_filename
from medivision.utils.exceptions import (
    ExtractionFailure,
    HistoryRecordNotFound,
    InvalidStateTransition,
    PersistenceError,
    ValidationError,
)
from medivision.utils.logging import setup_logging
from medivision.utils.metrics import get_metrics

logger = logging.getLogger(__name__)


app = FastAPI(
    title="MediVision API",
    description="Medication reconciliation and clinician review",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000", "http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# State
# ============================================================================

class AppState:
    """Pipeline plus the one active review session."""

    def __init__(self, pipeline: ReconciliationPipeline, profile_store: Optional[ProfileStore] = None):
        self.pipeline = pipeline
        self.profile_store = profile_store
        self.session: Optional[ReviewSession] = None
        self.translation: Optional[TranslatedContent] = None

    def require_session(self) -> ReviewSession:
        if self.session is None:
            raise HTTPException(status_code=404, detail="No active session. Upload images first.")
        return self.session

    def set_session(self, session: ReviewSession) -> None:
        self.session = session
        self.translation = None
        self.persist()

    def persist(self) -> None:
        if self.profile_store is None or self.session is None:
            return
        self.profile_store.save(PatientProfile.from_result(
            self.session.result,
            status=self.session.status,
        ))


_state: Optional[AppState] = None


def get_state() -> AppState:
    global _state
    if _state is None:
        setup_logging(
            level=logging_settings.LOG_LEVEL,
            log_file=logging_settings.LOG_FILE,
            format_json=logging_settings.LOG_JSON,
        )
        base_settings.create_directories()
        pipeline = ReconciliationPipeline(OllamaVisionClient(), history_store=SQLiteHistoryStore())
        _state = AppState(pipeline, ProfileStore())
    return _state


# ============================================================================
# Error mapping
# ============================================================================

@app.exception_handler(InvalidStateTransition)
async def invalid_state_handler(request: Request, exc: InvalidStateTransition):
    return JSONResponse(status_code=409, content={
        "detail": str(exc), "current": exc.current, "attempted": exc.attempted,
    })


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content={"detail": str(exc), "field": exc.field_name})


@app.exception_handler(ExtractionFailure)
async def extraction_failure_handler(request: Request, exc: ExtractionFailure):
    logger.warning(f"Extraction failure surfaced to client: {exc}")
    return JSONResponse(status_code=502, content={
        "detail": "Could not read the medications from these images. Please try again.",
        "retryable": True,
    })


@app.exception_handler(HistoryRecordNotFound)
async def history_not_found_handler(request: Request, exc: HistoryRecordNotFound):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    logger.error(f"Persistence error: {exc}")
    return JSONResponse(status_code=500, content={"detail": str(exc)})


# ============================================================================
# Models
# ============================================================================

class EditRequest(BaseModel):
    field: str
    value: Any = None


class MoveRequest(BaseModel):
    medication_id: str
    from_slot: str
    to_slot: str


class ApproveRequest(BaseModel):
    schedule_name: str = ""


class ChangesRequest(BaseModel):
    note: str = ""


class TranslateRequest(BaseModel):
    language: str


# ============================================================================
# Endpoints
# ============================================================================

@app.get("/")
async def root():
    return {"status": "ok", "service": "MediVision API"}


@app.get("/api/health")
async def health(state: AppState = Depends(get_state)):
    """Health check for monitoring, including the extraction backend."""
    extraction = await state.pipeline.health()
    return {"status": "healthy", "extraction": extraction, "busy": state.pipeline.busy}


@app.get("/api/metrics")
async def metrics():
    return get_metrics().get_all_metrics()


@app.post("/api/analyze")
async def analyze(files: List[UploadFile] = File(...), state: AppState = Depends(get_state)):
    """
    Upload label / discharge photos and start a new DRAFT session.

    On failure the previous session is left untouched so the client can
    retry with the same images.
    """
    images = []
    for upload in files:
        mime_type = (upload.content_type or "").lower()
        if mime_type not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                f"Unsupported file type {mime_type or 'unknown'} for {upload.filename}",
                field_name="files",
            )
        images.append(ImagePayload(data=await upload.read(), mime_type=mime_type))

    session = await state.pipeline.analyze(images)
    state.set_session(session)
    return session.to_dict()


@app.get("/api/session")
async def get_session(state: AppState = Depends(get_state)):
    session = state.require_session()
    payload = session.to_dict()
    payload["translation"] = state.translation.to_dict() if state.translation else None
    return payload


@app.post("/api/session/start-review")
async def start_review(state: AppState = Depends(get_state)):
    session = state.require_session()
    session.start_review()
    state.persist()
    return session.to_dict()


@app.patch("/api/session/medications/{medication_id}")
async def edit_medication(medication_id: str, request: EditRequest, state: AppState = Depends(get_state)):
    session = state.require_session()
    applied = session.edit_field(medication_id, request.field, request.value)
    if applied:
        state.translation = None
        state.persist()
    return {"applied": applied, "session": session.to_dict()}


@app.post("/api/session/move")
async def move_medication(request: MoveRequest, state: AppState = Depends(get_state)):
    session = state.require_session()
    applied = session.move_medication(request.medication_id, request.from_slot, request.to_slot)
    if applied:
        state.persist()
    return {"applied": applied, "session": session.to_dict()}


@app.post("/api/session/request-changes")
async def request_changes(request: ChangesRequest, state: AppState = Depends(get_state)):
    session = state.require_session()
    session.request_changes(request.note)
    state.persist()
    return session.to_dict()


@app.post("/api/session/approve")
async def approve(request: ApproveRequest, state: AppState = Depends(get_state)):
    session = state.require_session()
    record = session.approve(request.schedule_name)
    state.persist()
    return record.to_dict()


@app.post("/api/session/revise")
async def revise(state: AppState = Depends(get_state)):
    session = state.require_session()
    state.set_session(session.revise())
    return state.session.to_dict()


@app.post("/api/session/translate")
async def translate(request: TranslateRequest, state: AppState = Depends(get_state)):
    """Translate for display/print. Falls back to the original language on any problem."""
    session = state.require_session()
    content = await state.pipeline.translate(session.result, request.language)
    state.translation = content
    return {
        "translated": content is not None,
        "language": request.language if content else None,
        "content": content.to_dict() if content else None,
    }


@app.get("/api/session/report", response_class=HTMLResponse)
async def report(translated: bool = True, state: AppState = Depends(get_state)):
    session = state.require_session()
    name = session.schedule_name or "Draft"
    date = session.approved_record.date if session.approved_record else None

    if translated and state.translation is not None:
        document = build_report(
            state.translation.apply(session.result), name,
            labels=state.translation.labels, date=date,
        )
    else:
        document = build_report(session.result, name, date=date)

    return HTMLResponse(
        content=render_html(document),
        headers={"X-Report-Filename": report_filename(name)},
    )


@app.get("/api/history")
async def list_history(state: AppState = Depends(get_state)):
    records = state.pipeline.history_store.list()
    return {"records": [
        {
            "id": r.id,
            "date": r.date.isoformat(),
            "scheduleName": r.schedule_name,
            "medicationCount": len(r.data.medications),
            "warningCount": len(r.data.warnings),
        }
        for r in records
    ]}


@app.get("/api/history/{record_id}")
async def get_history(record_id: str, state: AppState = Depends(get_state)):
    return state.pipeline.history_store.get(record_id).to_dict()


@app.post("/api/history/{record_id}/open")
async def open_history(record_id: str, state: AppState = Depends(get_state)):
    """Make a stored schedule the active (APPROVED, read-only) session for viewing/printing."""
    session = ReviewSession.from_history(record_id, state.pipeline.history_store)
    state.session = session
    state.translation = None
    return session.to_dict()


@app.get("/api/profile")
async def get_profile(state: AppState = Depends(get_state)):
    if state.profile_store is None:
        raise HTTPException(status_code=404, detail="Profile storage disabled")
    return state.profile_store.load().to_dict()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
