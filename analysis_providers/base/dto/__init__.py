"""DTO package: request settings, analysis payloads and schemas."""

from .request import ProviderRequestConfig, RequestPrompt, StructuredSchema
from .analysis import (
    AnnotationData,
    AnnotationsResponse,
    ChapterAnalysis,
    ChapterClassification,
    ClassificationResponse,
    ImageSuggestion,
    QuizData,
    QuizResponse,
    SummaryResponse,
)
from . import schemas

__all__ = [
    "ProviderRequestConfig",
    "RequestPrompt",
    "StructuredSchema",
    "AnnotationData",
    "AnnotationsResponse",
    "ChapterAnalysis",
    "ChapterClassification",
    "ClassificationResponse",
    "ImageSuggestion",
    "QuizData",
    "QuizResponse",
    "SummaryResponse",
    "schemas",
]
