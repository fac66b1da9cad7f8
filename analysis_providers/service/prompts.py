"""Prompt library for chapter analysis, follow-ups, chat, summaries and classification.

Prompts that embed chapter text are returned split: the stable instructions
form the cache prefix and the chapter-specific part the suffix, so vendors
with prompt caching (Anthropic) can reuse the prefix across chapters.
"""
from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional, Sequence, Tuple

from ..base.dto import RequestPrompt

BEGINNING_OF_BOOK = "Beginning of book."
BOOK_OPENING = "This is the beginning of the book."
CLASSIFICATION_PREVIEW_WORDS = 200


class DensityLevel(str, Enum):
    MINIMAL = "minimal"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    XHIGH = "xhigh"

    @property
    def insight_guidance(self) -> str:
        return _INSIGHT_GUIDANCE[self]

    @property
    def image_guidance(self) -> str:
        return _IMAGE_GUIDANCE[self]


_INSIGHT_GUIDANCE = {
    DensityLevel.MINIMAL: "Only the most essential insights. Skip minor points.",
    DensityLevel.LOW: "A few high-value insights. Avoid filler.",
    DensityLevel.MEDIUM: "A balanced set of meaningful insights.",
    DensityLevel.HIGH: "Many insights covering most notable moments.",
    DensityLevel.XHIGH: "Dense, near-exhaustive insights. Avoid redundancy.",
}

_IMAGE_GUIDANCE = {
    DensityLevel.MINIMAL: "Only the most visually striking moments.",
    DensityLevel.LOW: "A few strong illustration-worthy scenes.",
    DensityLevel.MEDIUM: "Balanced visual coverage of key scenes.",
    DensityLevel.HIGH: "Many visual moments, but avoid filler.",
    DensityLevel.XHIGH: "Very visual and rich. Capture nearly all strong scenes.",
}

_ANALYSIS_INSTRUCTIONS = """You're helping a thoughtful reader get more from this chapter. Think of yourself as a well-read friend who notices things they might miss.

## The Reader
Values: Technical accuracy, philosophical depth, surprising connections, the "why" behind things.
Hates: Generic observations, preachy commentary, anything that wastes their time.

## What Makes a Good Insight

GOOD insights add something the reader didn't have:
- Real science/engineering that illuminates the fiction (or reveals where it diverges)
- Historical events, figures, periods that connect to the text
- The philosophical question the author is actually exploring (not "themes of X")
- Connections to other works, mythology, intellectual traditions
- In-universe implications the author left unstated

BAD insights state the obvious:
- "The author uses vivid imagery" (we can see that)
- "This raises questions about humanity" (what questions?)

## Examples

EXCELLENT:
{
  "type": "science",
  "title": "The orbital mechanics are backwards",
  "content": "The described trajectory would require accelerating toward Earth, not away. Hard sci-fi usually gets this right, so the 'error' might be intentional.",
  "sourceBlockId": 7
}

GENERIC (never do this):
{
  "type": "philosophy",
  "title": "Questions of identity",
  "content": "The author explores themes of identity and what it means to be human."
}
"""


def book_context_line(book_title: Optional[str], author: Optional[str]) -> str:
    """Return the ``[Book context: ...]`` line, or ``""`` without a title."""
    title = (book_title or "").strip()
    if not title:
        return ""
    who = (author or "").strip()
    if who:
        return (
            f'[Book context: "{title}" by {who}. Use what you know about the book and author, '
            "but do not force connections.]\n\n"
        )
    return f'[Book context: "{title}"]\n\n'


def _image_section(image_density: Optional[DensityLevel]) -> str:
    if image_density is None:
        return ""
    return f"""
## Images ({image_density.image_guidance})
Suggest scenes worth visualizing:
- Striking visuals: ships, architecture, creatures, landscapes, key objects
- Moments with distinctive atmosphere
- Spatial layouts that help understanding

Each needs: excerpt (the passage to illustrate, quoted from the text), sourceBlockId (place near this scene).
Skip if nothing merits visualization.
"""


def _length_hint(word_count: Optional[int]) -> str:
    if not word_count:
        return ""
    return f"\nThe chapter is about {word_count} words; scale the number of insights to its length.\n"


def analysis_prompt(
    content_with_blocks: str,
    rolling_summary: Optional[str] = None,
    *,
    book_title: Optional[str] = None,
    author: Optional[str] = None,
    insight_density: DensityLevel = DensityLevel.MEDIUM,
    image_density: Optional[DensityLevel] = None,
    word_count: Optional[int] = None,
) -> RequestPrompt:
    """Full chapter analysis prompt (insights, quiz, optional images, summary)."""
    suffix = f"""
## The Chapter

{book_context_line(book_title, author)}Context: {rolling_summary or BOOK_OPENING}

Text (blocks numbered for margin placement):
{content_with_blocks}

## Output

Generate insights. Density: {insight_density.insight_guidance}{_length_hint(word_count)}
For each:
- type: science | history | philosophy | connection | world
- title: Specific and intriguing
- content: Add real information or a genuine new perspective
- sourceBlockId: The block where the note belongs in the margin.

## Quiz

Questions testing understanding, not memory:
- Why did X happen? (causality)
- What would happen if Y? (prediction)
- How does A connect to B? (synthesis)

Each: question, answer, sourceBlockId.
{_image_section(image_density)}
## Summary
2-3 sentences: what happened and what matters for understanding the rest.
"""
    return RequestPrompt.split(_ANALYSIS_INSTRUCTIONS, suffix)


def _bullets(items: Sequence[str]) -> str:
    return "\n".join(f"- {i}" for i in items) if items else "None yet"


def more_insights_prompt(
    content_with_blocks: str,
    rolling_summary: Optional[str],
    existing_titles: Sequence[str],
    insight_density: DensityLevel = DensityLevel.MEDIUM,
) -> RequestPrompt:
    prefix = f"""Generate additional insights. Already covered:
{_bullets(existing_titles)}

Context: {rolling_summary or BEGINNING_OF_BOOK}

Text:
"""
    suffix = f"""{content_with_blocks}

Find what was missed:
- Science/tech angles
- Historical parallels
- Philosophical questions
- Connections to other works
- World-building implications

Density: {insight_density.insight_guidance}
Each: type, title, content, sourceBlockId.

Only include insights that pass the "I didn't know that" test.
"""
    return RequestPrompt.split(prefix, suffix)


def more_questions_prompt(
    content_with_blocks: str,
    rolling_summary: Optional[str],
    existing_questions: Sequence[str],
) -> RequestPrompt:
    prefix = f"""Generate additional quiz questions. Already covered:
{_bullets(existing_questions)}

Context: {rolling_summary or BEGINNING_OF_BOOK}

Text:
"""
    suffix = f"""{content_with_blocks}

Good questions:
- Causality and consequences
- Prediction from evidence
- Synthesis across events
- Character motivation

NOT trivia, names, or ctrl+F-able facts.

Each: question, answer, sourceBlockId.
"""
    return RequestPrompt.split(prefix, suffix)


def chat_prompt(message: str, content_with_blocks: str, rolling_summary: Optional[str] = None) -> RequestPrompt:
    prefix = f"""Discussing this chapter with a reader.

Story so far: {rolling_summary or BEGINNING_OF_BOOK}

Chapter:
{content_with_blocks}

Question:
"""
    suffix = f""""{message}"

Be substantive:
- Science/history: give real information
- Story questions: analyze with evidence
- Confusion: clarify without condescension

No spoilers beyond this chapter.
"""
    return RequestPrompt.split(prefix, suffix)


def summary_prompt(content_with_blocks: str, rolling_summary: Optional[str] = None) -> RequestPrompt:
    return RequestPrompt.plain(
        f"""Summarize this chapter for a reader who will continue the book.

Story so far: {rolling_summary or BEGINNING_OF_BOOK}

Chapter:
{content_with_blocks}

2-3 sentences: what happened and what matters for understanding the rest. No commentary.
"""
    )


def chapter_classification_prompt(chapters: Iterable[Tuple[int, str, str]]) -> RequestPrompt:
    """Classify ``(index, title, preview)`` tuples as content or garbage.

    Previews are truncated to the first 200 words.
    """
    listing = ""
    for index, title, preview in chapters:
        words = " ".join(preview.split()[:CLASSIFICATION_PREVIEW_WORDS])
        listing += f'[{index}] "{title}"\n{words}\n\n'
    return RequestPrompt.plain(
        f"""Classify each chapter as content or garbage.

Content: Actual story, substantive introductions, meaningful prologues/epilogues.
Garbage: Title pages, copyright, TOC, acknowledgements, about the author, empty chapters.

Lean toward "content" when unsure.

{listing}
Return one classification per index.
"""
    )


__all__ = [
    "DensityLevel",
    "book_context_line",
    "analysis_prompt",
    "more_insights_prompt",
    "more_questions_prompt",
    "chat_prompt",
    "summary_prompt",
    "chapter_classification_prompt",
]
