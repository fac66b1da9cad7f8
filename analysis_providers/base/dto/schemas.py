"""JSON Schemas for the structured analysis prompts.

Every object schema sets ``additionalProperties: false`` and lists all of its
properties as required, which is what strict structured-output modes demand.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from .request import StructuredSchema

INSIGHT_TYPES = ["science", "history", "philosophy", "connection", "world"]


def string(description: Optional[str] = None, enum: Optional[List[str]] = None) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": "string"}
    if description:
        schema["description"] = description
    if enum:
        schema["enum"] = list(enum)
    return schema


def integer(description: Optional[str] = None) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": "integer"}
    if description:
        schema["description"] = description
    return schema


def array(items: Dict[str, Any], description: Optional[str] = None) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": "array", "items": items}
    if description:
        schema["description"] = description
    return schema


def obj(properties: Dict[str, Any], description: Optional[str] = None) -> Dict[str, Any]:
    schema: Dict[str, Any] = {
        "type": "object",
        "properties": properties,
        "required": list(properties),
        "additionalProperties": False,
    }
    if description:
        schema["description"] = description
    return schema


ANNOTATION = obj(
    {
        "type": string("Insight category.", INSIGHT_TYPES),
        "title": string("Compelling title hinting at the discovery."),
        "content": string("Substantive explanation with specifics."),
        "sourceBlockId": integer("Block number [N] this relates to."),
    }
)

QUIZ_QUESTION = obj(
    {
        "question": string("Question testing understanding, not trivia."),
        "answer": string("Complete answer with reasoning."),
        "sourceBlockId": integer("Block number [N] containing the answer."),
    }
)

IMAGE_SUGGESTION = obj(
    {
        "excerpt": string("Verbatim passage worth illustrating."),
        "sourceBlockId": integer("Block number [N] this depicts."),
    }
)


def chapter_analysis(images_enabled: bool = True) -> StructuredSchema:
    properties: Dict[str, Any] = {
        "annotations": array(ANNOTATION, "Chapter insights."),
        "quizQuestions": array(QUIZ_QUESTION, "Quiz questions."),
    }
    if images_enabled:
        properties["imageSuggestions"] = array(IMAGE_SUGGESTION, "Passages to illustrate.")
    properties["summary"] = string("2-3 sentence summary.")
    return StructuredSchema(name="chapter_analysis", schema=obj(properties))


ANNOTATIONS_ONLY = StructuredSchema(
    name="annotations",
    schema=obj({"annotations": array(ANNOTATION, "Additional insights.")}),
)

QUIZ_ONLY = StructuredSchema(
    name="quiz_questions",
    schema=obj({"quizQuestions": array(QUIZ_QUESTION, "Additional questions.")}),
)

SUMMARY_ONLY = StructuredSchema(
    name="chapter_summary",
    schema=obj({"summary": string("2-3 sentence summary.")}),
)

CHAPTER_CLASSIFICATION = StructuredSchema(
    name="chapter_classification",
    schema=obj(
        {
            "classifications": array(
                obj(
                    {
                        "index": integer("Chapter index."),
                        "type": string("content or garbage.", ["content", "garbage"]),
                    }
                ),
                "Chapter classifications.",
            )
        }
    ),
)


__all__ = [
    "INSIGHT_TYPES",
    "chapter_analysis",
    "ANNOTATIONS_ONLY",
    "QUIZ_ONLY",
    "SUMMARY_ONLY",
    "CHAPTER_CLASSIFICATION",
]
