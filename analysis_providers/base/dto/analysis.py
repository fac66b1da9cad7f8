"""Structured payloads returned by the analysis prompts.

Wire keys are camelCase (``quizQuestions``, ``sourceBlockId``); models accept
either the wire key or the Python field name. Missing collections decode as
empty so a model that omits an empty array still yields a valid payload.
"""

from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class AnnotationData(_WireModel):
    type: str
    title: str
    content: str
    source_block_id: int = Field(alias="sourceBlockId")


class QuizData(_WireModel):
    question: str
    answer: str
    source_block_id: int = Field(alias="sourceBlockId")


class ImageSuggestion(_WireModel):
    excerpt: str
    source_block_id: int = Field(alias="sourceBlockId")


class ChapterAnalysis(_WireModel):
    """Full result of a chapter analysis request."""

    annotations: List[AnnotationData] = Field(default_factory=list)
    quiz_questions: List[QuizData] = Field(default_factory=list, alias="quizQuestions")
    image_suggestions: List[ImageSuggestion] = Field(default_factory=list, alias="imageSuggestions")
    summary: str = ""


class AnnotationsResponse(_WireModel):
    annotations: List[AnnotationData] = Field(default_factory=list)


class QuizResponse(_WireModel):
    quiz_questions: List[QuizData] = Field(default_factory=list, alias="quizQuestions")


class ChapterClassification(_WireModel):
    index: int
    type: Literal["content", "garbage"]


class ClassificationResponse(_WireModel):
    classifications: List[ChapterClassification] = Field(default_factory=list)


class SummaryResponse(_WireModel):
    summary: str


__all__ = [
    "AnnotationData",
    "QuizData",
    "ImageSuggestion",
    "ChapterAnalysis",
    "AnnotationsResponse",
    "QuizResponse",
    "ChapterClassification",
    "ClassificationResponse",
    "SummaryResponse",
]
