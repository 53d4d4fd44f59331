"""
Fetch and read DiceCloud creature payloads.

This module handles both online fetching (via the v2 REST API with a
user's bearer token) and local reading of exported creature JSON.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import httpx

from ...config import Settings, load_settings
from ..base import ExtractionError
from .schema import DICECLOUD_BARE_ID_PATTERN, DICECLOUD_CHARACTER_URL_PATTERN

logger = logging.getLogger(__name__)


def extract_character_id(url_or_id: str) -> str:
    """
    Extract the creature ID from a DiceCloud URL or bare ID.

    Accepts:
    - Full URL: https://dicecloud.com/character/AbCdEf123456789xy
    - URL with slug: https://dicecloud.com/character/AbCdEf123456789xy/Thorin
    - Bare ID: "AbCdEf123456789xy"

    Raises:
        ExtractionError: If the input doesn't match expected format
    """
    text = (url_or_id or "").strip()
    match = DICECLOUD_CHARACTER_URL_PATTERN.search(text)
    if match:
        return match.group(1)

    if DICECLOUD_BARE_ID_PATTERN.match(text):
        return text

    raise ExtractionError(
        f"Invalid DiceCloud character URL or ID: '{url_or_id}'. "
        "Expected format: https://dicecloud.com/character/<id> or just the ID."
    )


def unwrap_payload(data: object) -> tuple[dict, dict, list]:
    """
    Split a creature payload into (creature, variables, properties).

    Variables and properties fall back to empty containers; a payload with
    no creature at all is rejected.

    Raises:
        ExtractionError: If the payload holds no creature data
    """
    # Unwrap {"data": {...}} envelope if present
    if isinstance(data, dict) and isinstance(data.get("data"), dict):
        data = data["data"]

    if not isinstance(data, dict):
        raise ExtractionError(
            f"Invalid creature payload: expected JSON object, got {type(data).__name__}"
        )

    creatures = data.get("creatures")
    if not isinstance(creatures, list) or not creatures or not isinstance(creatures[0], dict):
        raise ExtractionError("No creature data found in payload")

    variables = data.get("creatureVariables")
    if isinstance(variables, list):
        variables = variables[0] if variables and isinstance(variables[0], dict) else {}
    elif not isinstance(variables, dict):
        variables = {}

    properties = data.get("creatureProperties")
    if not isinstance(properties, list):
        properties = []

    return creatures[0], variables, properties


async def fetch_creature(
    url_or_id: str,
    token: str,
    settings: Settings | None = None,
) -> dict:
    """
    Fetch a creature payload from the DiceCloud API.

    Args:
        url_or_id: DiceCloud character URL or creature ID
        token: DiceCloud API bearer token
        settings: API base and timeout; read from the environment if omitted

    Returns:
        Raw payload with ``creatures``, ``creatureVariables`` and ``creatureProperties``

    Raises:
        ExtractionError: If the token is missing or expired, the character is
            private or missing, or DiceCloud can't be reached
    """
    if not token:
        raise ExtractionError("Not logged in to DiceCloud. An API token is required.")

    settings = settings or load_settings()
    character_id = extract_character_id(url_or_id)
    api_url = f"{settings.api_base}/creature/{character_id}"
    headers = {
        "Authorization": f"Bearer {token}",
        "Content-Type": "application/json",
    }
    logger.debug("Fetching creature %s", character_id)

    try:
        async with httpx.AsyncClient() as client:
            response = await client.get(api_url, headers=headers, timeout=settings.http_timeout)

            if response.status_code == 401:
                raise ExtractionError("API token expired. Please log in to DiceCloud again.")
            elif response.status_code == 403:
                raise ExtractionError(
                    "Character is private. Share it or log in as its owner, or use file import."
                )
            elif response.status_code == 404:
                raise ExtractionError(
                    f"Character not found. Check the ID or URL: {character_id}"
                )

            response.raise_for_status()

            data = response.json()

    except httpx.TimeoutException:
        raise ExtractionError(
            "DiceCloud is not responding. Try again later or use file import."
        ) from None
    except httpx.HTTPStatusError as e:
        raise ExtractionError(
            f"DiceCloud returned HTTP {e.response.status_code}: {e.response.reason_phrase}"
        ) from None
    except httpx.RequestError as e:
        raise ExtractionError(
            f"Failed to connect to DiceCloud: {e}"
        ) from None
    except ValueError as e:
        raise ExtractionError(f"Invalid JSON from DiceCloud: {e}") from None

    # Validate structure early so callers get a clear message
    unwrap_payload(data)
    return data


def read_creature_file(file_path: str) -> dict:
    """
    Read and validate a local DiceCloud creature JSON export.

    Raises:
        ExtractionError: If file not found, invalid JSON, or no creature data
    """
    path = Path(file_path)

    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise ExtractionError(
            f"Creature file not found: {file_path}"
        ) from None
    except json.JSONDecodeError as e:
        raise ExtractionError(
            f"Invalid JSON in creature file: {e}"
        ) from None
    except OSError as e:
        raise ExtractionError(
            f"Failed to read creature file: {e}"
        ) from None

    unwrap_payload(data)
    return data
