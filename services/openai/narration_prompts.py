"""Prompt helpers for city and nearby-places narration."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Mapping, Optional, Sequence

import aiofiles

import config

CITY_DESCRIPTION_TEMPLATE = "city_description.txt"
NEARBY_PLACES_TEMPLATE = "nearby_places.txt"


async def load_prompt_template(filename: str, prompts_dir: Optional[Path] = None) -> str:
    """Read a prompt template from the prompts directory.

    Raises:
        RuntimeError: If the template cannot be read.
    """
    path = Path(prompts_dir or config.PROMPTS_DIR) / filename
    try:
        async with aiofiles.open(path, "r", encoding="utf-8") as f:
            content = await f.read()
    except OSError as exc:
        raise RuntimeError(f"Failed to load prompt template {filename}: {exc}") from exc
    return content.strip()


def fill_prompt_template(template: str, variables: Mapping[str, str]) -> str:
    """Replace every `{key}` placeholder with its value; unknown placeholders are left alone."""
    filled = template
    for key, value in variables.items():
        filled = re.sub(r"\{" + re.escape(key) + r"\}", lambda _match: value, filled)
    return filled


def avoid_repetition_block(mentioned_places: Sequence[str], previous_responses: Sequence[str]) -> str:
    """Tell the model what it already said.

    Full previous responses give the model the most context, so they win
    over the flat list of extracted place names.
    """
    if previous_responses:
        numbered = "\n".join(f"{idx}. {text.strip()}" for idx, text in enumerate(previous_responses, start=1))
        return (
            "You have already told the visitor the following:\n"
            f"{numbered}\n"
            "Do not mention any of the places from these earlier answers again; suggest different ones."
        )
    if mentioned_places:
        return (
            "Do not mention these places again, the visitor has already heard about them: "
            + ", ".join(mentioned_places)
            + "."
        )
    return ""


def nearby_places_variables(
    street: str,
    city: str,
    country: str,
    mentioned_places: Sequence[str],
    previous_responses: Sequence[str],
) -> dict:
    return {
        "street": street or "Unknown",
        "city": city,
        "country": country,
        "avoid_repetition": avoid_repetition_block(mentioned_places, previous_responses),
    }
