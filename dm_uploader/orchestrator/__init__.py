"""Orchestrator package - coordinates upload workflows."""
from .core import UploadOrchestrator
from .pipeline import MediaUploadPipeline

__all__ = ["UploadOrchestrator", "MediaUploadPipeline"]
