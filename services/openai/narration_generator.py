"""City and nearby-places narration using OpenAI chat completions."""

import logging
import time
from typing import Any, Dict, Optional, Sequence

from openai import AsyncOpenAI

import config
from services.openai.narration_prompts import (
    CITY_DESCRIPTION_TEMPLATE,
    NEARBY_PLACES_TEMPLATE,
    fill_prompt_template,
    load_prompt_template,
    nearby_places_variables,
)
from services.openai.response_utils import extract_completion_text, serialize_response

LOGGER = logging.getLogger(__name__)


class NarrationGenerator:
    """Generate short spoken narrations about the user's surroundings.

    Every method returns None instead of raising: a missing client, missing
    input, failed request or empty completion all mean "no narration".
    """

    def __init__(
        self,
        client: Optional[AsyncOpenAI],
        model: str = config.OPENAI_MODEL,
        prompts_dir=None,
    ) -> None:
        self.client = client
        self.model = model
        self.prompts_dir = prompts_dir

    async def city_description(self, city: Optional[str]) -> Optional[str]:
        """Return a short spoken description of `city`."""
        if self.client is None:
            LOGGER.warning("OPENAI_API_KEY is not set. Skipping city description.")
            return None
        if not city:
            LOGGER.warning("No city provided for city description.")
            return None

        prompt = await self._build_prompt(CITY_DESCRIPTION_TEMPLATE, {"city": city})
        if prompt is None:
            return None

        LOGGER.info("Requesting city description for: %s", city)
        description = await self._complete(prompt, config.CITY_DESCRIPTION_MAX_TOKENS)
        if description:
            LOGGER.info("Received city description: %s...", description[:50])
        return description

    async def nearby_places(
        self,
        street: Optional[str],
        city: Optional[str],
        country: Optional[str],
        mentioned_places: Sequence[str] = (),
        previous_responses: Sequence[str] = (),
    ) -> Optional[str]:
        """Return a narration of places near the user that avoids repeating earlier ones."""
        if self.client is None:
            LOGGER.warning("OPENAI_API_KEY is not set. Skipping nearby places.")
            return None
        if not city or not country:
            LOGGER.warning("City and country are required for nearby places (city=%s, country=%s).", city, country)
            return None

        variables = nearby_places_variables(street or "Unknown", city, country, mentioned_places, previous_responses)
        prompt = await self._build_prompt(NEARBY_PLACES_TEMPLATE, variables)
        if prompt is None:
            return None

        LOGGER.info(
            "Requesting nearby places for %s, %s, %s (previous responses: %d, mentioned places: %d)",
            variables["street"],
            city,
            country,
            len(previous_responses),
            len(mentioned_places),
        )
        narration = await self._complete(prompt, config.NEARBY_PLACES_MAX_TOKENS)
        if narration:
            LOGGER.info("Received nearby places: %s...", narration[:100])
        return narration

    async def _build_prompt(self, template_name: str, variables: Dict[str, str]) -> Optional[str]:
        try:
            template = await load_prompt_template(template_name, self.prompts_dir)
        except RuntimeError as exc:
            LOGGER.error("%s", exc)
            return None
        return fill_prompt_template(template, variables)

    async def _complete(self, prompt: str, max_tokens: int) -> Optional[str]:
        """Send a single user message and return the first choice text."""
        start_time = time.time()
        try:
            response: Any = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                max_completion_tokens=max_tokens,
            )
        except Exception as exc:
            LOGGER.error("Error during OpenAI chat completion call: %s", exc)
            return None

        LOGGER.debug("Chat completion latency: %.3fs", time.time() - start_time)
        text = extract_completion_text(response)
        if not text:
            LOGGER.warning("OpenAI returned an empty completion. Full response: %r", serialize_response(response))
            return None
        return text
