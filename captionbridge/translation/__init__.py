"""Transcript correction and translation."""

from .base import AbstractCorrectionEngine
from .chatgpt_engine import ChatGPTCorrectionEngine
from .http_engine import HttpCorrectionEngine
from .mymemory_engine import MyMemoryCorrectionEngine
from .stage import CorrectionStage

__all__ = [
    "AbstractCorrectionEngine",
    "ChatGPTCorrectionEngine",
    "HttpCorrectionEngine",
    "MyMemoryCorrectionEngine",
    "CorrectionStage",
]
