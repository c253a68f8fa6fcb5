"""Verify that the configured OPENAI_API_KEY and model answer a text completion.

Goes through `OpenAIModelClient`, so it exercises the same SDK path, timeout
and error mapping as the dashboard.
"""

from __future__ import annotations

import asyncio
import sys
from typing import Optional

from hyderaqi.config.api_config import ModelSettings, resolve_model_settings
from hyderaqi.lib.errors import TransportError
from hyderaqi.lib.llm_client import OpenAIModelClient

DEFAULT_PROMPT = "Reply with a short confirmation that the API key is working."


def run(
    prompt: str = DEFAULT_PROMPT,
    settings: Optional[ModelSettings] = None,
    client: Optional[OpenAIModelClient] = None,
) -> str:
    client = client or OpenAIModelClient(settings or resolve_model_settings())
    return asyncio.run(client.generate_text(prompt, temperature=0.1))


def main(argv=None, client: Optional[OpenAIModelClient] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    user_prompt = " ".join(argv).strip() or DEFAULT_PROMPT
    client = client or OpenAIModelClient(resolve_model_settings())
    try:
        reply = run(user_prompt, client=client)
    except TransportError as exc:
        print("✗ OpenAI call failed:", exc)
        return 1
    print(f"✓ OpenAI response from {client.settings.model}:")
    print(reply or "<no content>")
    return 0


if __name__ == "__main__":
    sys.exit(main())
