"""Utterance pipeline: dispatcher, session controller, presenters."""
from .controller import SessionController
from .dispatcher import PipelineDispatcher
from .presenter import CaptureReport, LoggingPresenter, Presenter, UtteranceResult, WebSocketPresenter

__all__ = [
    "CaptureReport",
    "LoggingPresenter",
    "PipelineDispatcher",
    "Presenter",
    "SessionController",
    "UtteranceResult",
    "WebSocketPresenter",
]
