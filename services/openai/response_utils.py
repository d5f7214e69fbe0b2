"""Utilities for reading and serializing OpenAI chat completion responses."""

from typing import Any, Optional


def extract_completion_text(response: Any) -> Optional[str]:
    """Return the stripped content of the first choice, or None when it is empty.

    Args:
        response: Object returned by `AsyncOpenAI.chat.completions.create`.
    """
    choices = getattr(response, "choices", None)
    if not choices:
        return None

    message = getattr(choices[0], "message", None)
    content = getattr(message, "content", None) if message is not None else None
    if not isinstance(content, str):
        return None

    text = content.strip()
    return text or None


def serialize_response(response: Any) -> Any:
    """Convert a response object into a serializable structure."""
    if hasattr(response, "model_dump"):
        return response.model_dump()
    if hasattr(response, "to_dict"):
        return response.to_dict()
    return str(response)
