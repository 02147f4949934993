# agents/base_agent.py

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, List, Optional, Tuple

from config.openai_client import get_client, get_default_model
from core.models import GroundingSource, StrategyReport, StrategyRequest


class BaseAgent(ABC):
    """
    Base class for LLM-backed collaborators of the auction engine.

    - Provides shared prompt loading
    - Wraps the OpenAI Responses API call
    - Pulls text and url citations out of a response
    """

    def __init__(self, name: str, client: Optional[Any] = None, model: Optional[str] = None):
        self.name = name
        self._client = client
        self.model = model or get_default_model()

    @abstractmethod
    def generate(self, request: StrategyRequest) -> StrategyReport:
        raise NotImplementedError

    # ---------- Prompt loading ----------

    def load_prompt_template(self, filename: str) -> str:
        """
        Load a prompt template from the prompts/ directory.
        """
        prompts_dir = Path(__file__).resolve().parent.parent / "prompts"
        path = prompts_dir / filename
        return path.read_text(encoding="utf-8")

    # ---------- LLM call ----------

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = get_client()
        return self._client

    def call_llm(self, prompt: str) -> Tuple[str, List[GroundingSource]]:
        """
        Call the OpenAI Responses API with a simple prompt.

        Returns the text of the first message block and any url citations
        attached to it.
        """
        response = self.client.responses.create(
            model=self.model,
            input=prompt,
        )

        # The content is a list of "content blocks"; we want the text of the first one
        message = response.output[0]
        first_block = message.content[0]
        text = first_block.text

        sources: List[GroundingSource] = []
        for annotation in getattr(first_block, "annotations", None) or []:
            if getattr(annotation, "type", None) == "url_citation":
                sources.append(
                    GroundingSource(
                        title=getattr(annotation, "title", None),
                        uri=getattr(annotation, "url", None),
                    )
                )

        return text, sources
