"""Prompt construction and references-section post-processing."""

import re
from typing import Sequence

from article_pipeline.core.models import ReferenceArticle, SourceArticle

SYSTEM_PROMPT = (
    "You are an expert content writer specializing in article rewriting and SEO optimization."
)

INSTRUCTIONS = (
    "Study the writing style, tone and formatting of the reference articles.",
    "Rewrite the original article in that style while keeping every key fact from it.",
    "Structure the result with clear headings and short paragraphs.",
    "Use your own phrasing and never copy sentences from the reference articles.",
    "Keep the original article's intent and core message.",
    "Make the content engaging and professional.",
    'Finish with a "References" section that cites exactly the URLs listed below, in that order.',
)

# Line that opens a references section: a markdown or bold heading starting with
# "references" or "sources" (e.g. "## References and Further Reading"), or the bare word
REFERENCES_HEADING_RE = re.compile(
    r"^[ \t]*(?:"
    r"#{1,6}[ \t]*(?:references|sources)\b[^\n]*"
    r"|\*\*[ \t]*(?:references|sources)\b[^\n]*?\*\*[ \t]*:?"
    r"|(?:references|sources)[ \t]*:?"
    r")[ \t]*$",
    re.IGNORECASE | re.MULTILINE,
)


def _reference_block(index: int, reference: ReferenceArticle, excerpt_chars: int) -> str:
    excerpt = reference.body_text[:excerpt_chars]
    if len(reference.body_text) > excerpt_chars:
        excerpt += "..."
    return (
        f"Reference Article {index}:\n"
        f"Title: {reference.title}\n"
        f"URL: {reference.url}\n"
        f"Content Sample: {excerpt}"
    )


def build_rewrite_prompt(
    source: SourceArticle,
    references: Sequence[ReferenceArticle],
    excerpt_chars: int = 800,
) -> str:
    """Build the single prompt string every generation backend receives."""
    instructions = "\n".join(f"{i}. {line}" for i, line in enumerate(INSTRUCTIONS, 1))
    reference_blocks = "\n\n---\n\n".join(
        _reference_block(i, reference, excerpt_chars) for i, reference in enumerate(references, 1)
    )
    citations = "\n".join(f"{i}. {reference.url}" for i, reference in enumerate(references, 1))

    return (
        "Rewrite the following article so it reads like the top-ranking articles on the same topic.\n\n"
        f"INSTRUCTIONS:\n{instructions}\n\n"
        f"Original Article to Rewrite:\nTitle: {source.title}\n\nContent:\n{source.body_text}\n\n"
        f"Reference Articles (study their style, tone and formatting):\n{reference_blocks}\n\n"
        f"References to cite:\n{citations}\n\n"
        "Now rewrite the article:"
    )


def format_references_section(references: Sequence[ReferenceArticle]) -> str:
    lines = [f"{i}. [{reference.title}]({reference.url})" for i, reference in enumerate(references, 1)]
    return "## References\n\n" + "\n".join(lines)


def ensure_references_section(text: str, references: Sequence[ReferenceArticle]) -> str:
    """Replace whatever references section the model wrote with a deterministic one.

    The last references heading and everything after it is dropped, then a
    block listing exactly the supplied references in order is appended.
    """
    body = text.strip()
    headings = list(REFERENCES_HEADING_RE.finditer(body))
    if headings:
        body = body[:headings[-1].start()].rstrip()
    return f"{body}\n\n{format_references_section(references)}"
