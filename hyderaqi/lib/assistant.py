"""Chat assistant that keeps one conversation per dashboard session."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .llm_client import ChatBackend

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = (
    "You are 'HyderAQI Assistant', an expert on Hyderabad's air pollution. "
    "You have access to real-time data (PM2.5, PM10, etc.). "
    "Help citizens understand how to stay safe and explain the sources of pollution in Hyderabad "
    "like vehicular emissions, construction, and weather patterns."
)

ASSISTANT_FALLBACK = "I'm having trouble connecting right now. Please try again later."


@dataclass
class ChatSession:
    """Conversation state: the system instruction plus completed turns."""

    system_instruction: str = SYSTEM_INSTRUCTION
    turns: List[Dict[str, str]] = field(default_factory=list)

    def messages_with(self, message: str) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": self.system_instruction},
            *self.turns,
            {"role": "user", "content": message},
        ]

    def record(self, message: str, reply: str) -> None:
        self.turns.append({"role": "user", "content": message})
        self.turns.append({"role": "assistant", "content": reply})

    def reset(self) -> None:
        self.turns.clear()

    def __len__(self) -> int:
        return len(self.turns) // 2


class AirQualityAssistant:
    def __init__(self, backend: ChatBackend, session: Optional[ChatSession] = None):
        self.backend = backend
        self.session = session if session is not None else ChatSession()

    async def send(self, message: str) -> str:
        """Send one user turn. A failed turn is not added to the session."""

        try:
            reply = await self.backend.chat(self.session.messages_with(message))
        except Exception as exc:
            logger.warning("[assistant] chat turn failed: %s", exc)
            return ASSISTANT_FALLBACK

        if not reply or not reply.strip():
            logger.warning("[assistant] empty reply")
            return ASSISTANT_FALLBACK

        self.session.record(message, reply)
        return reply

    def reset(self) -> None:
        self.session.reset()
