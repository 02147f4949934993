# config/openai_client.py

from __future__ import annotations

from typing import Optional

from openai import OpenAI

from config.settings import load_settings

_client: Optional[OpenAI] = None


def get_client() -> OpenAI:
    """
    Return the shared OpenAI client, creating it on first use.

    The statistics engine never calls this, so a missing key only matters
    when a strategy report is requested.
    """
    global _client
    if _client is None:
        api_key = load_settings().openai_api_key
        if not api_key:
            raise RuntimeError("OPENAI_API_KEY not set in environment or .env file")
        _client = OpenAI(api_key=api_key)
    return _client


def get_default_model() -> str:
    return load_settings().openai_model
