"""
FastAPI app: session control and language preferences over HTTP;
voice transport feed over WebSocket.

WebSocket /ws/voice/{scope_id}: client sends JSON transport events
(speaking / tick / disconnect). Server pushes JSON results for that scope:
{ "type": "utterance" | "capture_report" | "message" | "error", ... }
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, WebSocket

from voicebridge.asr.local_whisper import LocalWhisperRecognizer
from voicebridge.config import Settings, get_settings
from voicebridge.logging_setup import configure_logging
from voicebridge.pipeline.controller import SessionController
from voicebridge.pipeline.dispatcher import PipelineDispatcher
from voicebridge.pipeline.presenter import WebSocketPresenter
from voicebridge.schemas.preferences import PreferenceRequest, PreferenceResponse
from voicebridge.schemas.sessions import SessionStatusResponse, StartSessionRequest, StopSessionResponse
from voicebridge.services.preferences import LanguagePreference, PreferenceStore
from voicebridge.services.summarizer import ChatSummarizer
from voicebridge.services.translator import DeepLTranslator
from voicebridge.sessions.models import ControlStatus
from voicebridge.sessions.registry import SessionRegistry
from voicebridge.websocket_manager import TransportSocket

logger = logging.getLogger(__name__)


def _load_whisper_model(settings: Settings):
    """Load faster-whisper model once. Called at startup when ASR_BACKEND=local."""
    try:
        from faster_whisper import WhisperModel
    except ImportError as err:
        raise ImportError(
            "faster-whisper is required for ASR_BACKEND=local. "
            "Install with: pip install faster-whisper"
        ) from err
    return WhisperModel(
        settings.LOCAL_WHISPER_MODEL,
        device=settings.LOCAL_WHISPER_DEVICE,
        compute_type=settings.LOCAL_WHISPER_COMPUTE_TYPE,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings)

    # Load Whisper model once at startup when using local backend (singleton)
    model = _load_whisper_model(settings) if settings.ASR_BACKEND == "local" else None
    if model is None:
        logger.warning("ASR_BACKEND=%s: recognition disabled, every utterance is empty", settings.ASR_BACKEND)

    translator = DeepLTranslator(settings=settings) if settings.DEEPL_API_KEY else None
    if translator is None:
        logger.warning("DEEPL_API_KEY not set: translating sessions deliver transcripts only")

    presenter = WebSocketPresenter()
    preferences = PreferenceStore(settings.PREFERENCES_FILE)
    dispatcher = PipelineDispatcher(
        recognizer=LocalWhisperRecognizer(model=model, beam_size=settings.LOCAL_WHISPER_BEAM_SIZE),
        translator=translator,
        summarizer=ChatSummarizer(settings=settings),
        preferences=preferences,
        presenter=presenter,
        settings=settings,
    )
    app.state.settings = settings
    app.state.presenter = presenter
    app.state.preferences = preferences
    app.state.controller = SessionController(SessionRegistry(), dispatcher, settings=settings)
    yield
    await app.state.controller.shutdown()
    if translator is not None:
        await translator.aclose()


app = FastAPI(
    title="Voice Bridge",
    description="Real-time multi-speaker voice capture and translation",
    lifespan=lifespan,
)


def _status(controller: SessionController, scope_id: str) -> SessionStatusResponse:
    session = controller.registry.get(scope_id)
    if session is None:
        return SessionStatusResponse(scope_id=scope_id, active=False)
    return SessionStatusResponse(
        scope_id=scope_id,
        active=True,
        mode=session.mode,
        state=session.state,
        generation=session.generation,
        speakers=session.accumulator.speakers(),
    )


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@app.post("/api/sessions/{scope_id}/start", response_model=SessionStatusResponse)
async def start_session(scope_id: str, body: StartSessionRequest, request: Request) -> SessionStatusResponse:
    controller: SessionController = request.app.state.controller
    result = await controller.start(scope_id, body.mode, body.origin_channel)
    if result.status is ControlStatus.ALREADY_ACTIVE:
        raise HTTPException(
            status_code=409,
            detail=f"A {result.session.mode.value} session is already active for {scope_id}",
        )
    return _status(controller, scope_id)


@app.post("/api/sessions/{scope_id}/stop", response_model=StopSessionResponse)
async def stop_session(scope_id: str, request: Request) -> StopSessionResponse:
    controller: SessionController = request.app.state.controller
    result, report = await controller.stop(scope_id)
    if result.status is ControlStatus.NO_SESSION:
        raise HTTPException(status_code=404, detail=f"No active session for {scope_id}")
    response = StopSessionResponse(scope_id=scope_id, mode=result.session.mode)
    if report is not None:
        response.artifacts = report.artifacts
        response.transcript = report.transcript
        response.minutes = report.minutes
        response.errors = report.errors
        response.degraded = report.degraded
    return response


@app.get("/api/sessions/{scope_id}", response_model=SessionStatusResponse)
async def get_session(scope_id: str, request: Request) -> SessionStatusResponse:
    return _status(request.app.state.controller, scope_id)


def _preference_response(user_id: str, pref: LanguagePreference) -> PreferenceResponse:
    return PreferenceResponse(
        user_id=user_id,
        source_lang=pref.source_lang,
        target_lang=pref.target_lang,
        source_name=pref.source_name,
        target_name=pref.target_name,
    )


@app.get("/api/preferences", response_model=list[PreferenceResponse])
async def list_preferences(request: Request) -> list[PreferenceResponse]:
    store: PreferenceStore = request.app.state.preferences
    return [_preference_response(uid, pref) for uid, pref in store.list_all()]


@app.get("/api/preferences/{user_id}", response_model=PreferenceResponse)
async def get_preference(user_id: str, request: Request) -> PreferenceResponse:
    pref = request.app.state.preferences.get(user_id)
    if pref is None:
        raise HTTPException(status_code=404, detail=f"No language preference for user {user_id}")
    return _preference_response(user_id, pref)


@app.put("/api/preferences/{user_id}", response_model=PreferenceResponse)
async def set_preference(user_id: str, body: PreferenceRequest, request: Request) -> PreferenceResponse:
    supported = request.app.state.settings.supported_languages
    source = body.source_lang.strip().lower()
    target = body.target_lang.strip().lower()
    for code in (source, target):
        if code not in supported:
            raise HTTPException(
                status_code=400,
                detail=f"Unsupported language: {code} (supported: {', '.join(supported)})",
            )
    pref = request.app.state.preferences.set(user_id, source, target)
    logger.info("Language preference for %s: %s -> %s", user_id, pref.source_name, pref.target_name)
    return _preference_response(user_id, pref)


@app.delete("/api/preferences/{user_id}")
async def delete_preference(user_id: str, request: Request) -> dict:
    if not request.app.state.preferences.remove(user_id):
        raise HTTPException(status_code=404, detail=f"No language preference for user {user_id}")
    return {"user_id": user_id, "removed": True}


@app.websocket("/ws/voice/{scope_id}")
async def voice_feed(websocket: WebSocket, scope_id: str) -> None:
    """
    WebSocket: client sends JSON transport events for scope_id.
    Events for a scope without an active session are ignored.
    """
    await websocket.accept()
    controller: SessionController = websocket.app.state.controller
    feed = TransportSocket(websocket, controller.ingestor(scope_id), websocket.app.state.presenter)
    try:
        await feed.run()
    except Exception:
        logger.exception("Transport feed for %s failed", scope_id)
        try:
            await websocket.close()
        except RuntimeError:
            pass


def run() -> None:
    """Console entry point: serve the app with uvicorn (HOST/PORT from env)."""
    import os

    import uvicorn

    uvicorn.run(
        "voicebridge.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        log_config=None,
    )


if __name__ == "__main__":
    run()
