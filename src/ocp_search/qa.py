from __future__ import annotations

from openai import OpenAI

from .errors import GenerationError
from .logging_config import get_logger
from .schema import Passage

log = get_logger(__name__)

SYSTEM_PROMPT = """You are the Director of Planning for the Salt Spring Island Local Trust Area. You have decades of experience in land use planning, bylaw interpretation, and community governance within the Islands Trust framework.

When answering questions:
- Draw ONLY from the OCP policy excerpts provided in the user message. Do not invent policies or reference sections not included.
- Cite specific policy numbers (e.g., "Policy B.2.2.2.15 states...") when making claims.
- Be concise and direct: aim for 3-6 sentences for simple questions, up to 2-3 short paragraphs for complex ones.
- Use plain language accessible to residents, not planning jargon.
- If the provided excerpts don't fully answer the question, say so honestly and suggest which OCP sections the reader should consult.
- Where policies use weak language ("should," "could," "may consider"), note this. Residents deserve to know what is mandatory vs. discretionary.
- Never give legal advice. You are explaining what the OCP says, not how a court would interpret it.
- Do not use markdown headings. Use plain prose. You may bold key policy numbers with **B.2.2.2.15** formatting."""

PASSAGE_SEPARATOR = "\n\n---\n\n"
NO_RESPONSE = "No response generated."


def build_context(passages: list[Passage]) -> str:
    return PASSAGE_SEPARATOR.join(
        f"[{passage.id}] ({passage.section_title})\n{passage.text}" for passage in passages
    )


def build_user_message(question: str, passages: list[Passage]) -> str:
    return (
        f'A resident asks: "{question}"\n\n'
        "Here are the relevant OCP policy excerpts to base your answer on:\n\n"
        f"{build_context(passages)}\n\n"
        "Please provide a clear, helpful answer to the resident's question based on these policy excerpts."
    )


def answer_with_context(
    question: str,
    passages: list[Passage],
    model: str = "gpt-4.1-mini",
    client: OpenAI | None = None,
    max_output_tokens: int = 1024,
) -> str:
    try:
        client = client or OpenAI()
        response = client.responses.create(
            model=model,
            instructions=SYSTEM_PROMPT,
            input=build_user_message(question, passages),
            max_output_tokens=max_output_tokens,
        )
    except Exception as exc:
        log.error("Generation call failed: %s", exc)
        raise GenerationError(f"AI service error: {exc}") from exc
    return response.output_text or NO_RESPONSE
