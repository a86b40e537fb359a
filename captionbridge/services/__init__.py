"""Services layer: pipeline session, caption history and provider wiring."""

from .caption_history import CaptionHistory
from .pipeline import CaptionPipeline
from .provider_service import PipelineProviders, ProviderService
from .session import PipelineSession

__all__ = [
    "CaptionHistory",
    "CaptionPipeline",
    "PipelineProviders",
    "ProviderService",
    "PipelineSession",
]
