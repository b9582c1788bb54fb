"""Check-in note enhancement through the OpenAI chat completions API."""

import logging

from openai import AsyncOpenAI

from goalcast.config import settings

logger = logging.getLogger(__name__)

ENHANCE_NOTE_PROMPT = (
    "You are a helpful assistant that enhances daily check-in notes for goals. "
    "Make the notes more detailed, professional, and motivating while maintaining "
    "the original meaning. Keep the enhancement concise and natural."
)


class EnhancementUnavailable(RuntimeError):
    pass


def _client() -> AsyncOpenAI:
    if not settings.OPENAI_API_KEY:
        raise EnhancementUnavailable("OPENAI_API_KEY is not configured")
    return AsyncOpenAI(api_key=settings.OPENAI_API_KEY)


async def enhance_note(note: str, max_tokens: int = 150) -> str:
    """Return a rewritten note, or the original when the model answers empty.

    Raises on API errors; callers decide how to report them.
    """
    client = _client()
    response = await client.chat.completions.create(
        model=settings.OPENAI_MODEL,
        messages=[
            {"role": "system", "content": ENHANCE_NOTE_PROMPT},
            {"role": "user", "content": note},
        ],
        max_tokens=max_tokens,
        temperature=0.7,
    )
    content = response.choices[0].message.content if response.choices else None
    if not content:
        logger.info("Model returned no content, keeping original note")
        return note
    return content.strip()
