"""
etfscope.channel - request/response boundary to the web-searching model.

``WebSearchChannel.query(prompt)`` returns a ``RawModelResponse``: the model's
answer text plus the citations it was grounded on. The fetch pipelines only
depend on that one method, so any object providing it can stand in.

Providers
---------
- ``SearchProvider.OPENAI``: the chat model's native ``web_search_preview``
  tool. Citations come from the ``url_citation`` annotations on text blocks.
- ``SearchProvider.TAVILY``: a Tavily ``topic="finance"`` search is run
  first and its results are handed to the model as context; the results
  themselves become the citations.
"""
from __future__ import annotations

import logging
import os
from enum import Enum
from typing import Any, Optional, Protocol

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_openai import ChatOpenAI
from langchain_tavily import TavilySearch

from etfscope.models import RawModelResponse, Source

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"


class SearchProvider(Enum):
    """Supported web search providers."""
    TAVILY = "tavily"
    OPENAI = "openai"


class ModelChannel(Protocol):
    def query(self, prompt: str, search_terms: Optional[str] = None) -> RawModelResponse: ...


def _content_to_response(content: Any) -> RawModelResponse:
    """
    Flatten an ``AIMessage.content`` into text plus citations.

    OpenAI returns either a plain string or a list of content blocks; text
    blocks may carry ``annotations`` with ``url``/``title`` keys.
    """
    if isinstance(content, str):
        return RawModelResponse(text=content)

    parts: list[str] = []
    citations: list[Source] = []
    if isinstance(content, list):
        for block in content:
            if isinstance(block, str):
                parts.append(block)
                continue
            if not isinstance(block, dict):
                continue
            if block.get("type", "text") == "text" and block.get("text"):
                parts.append(block["text"])
            for note in block.get("annotations") or []:
                if isinstance(note, dict) and "url" in note:
                    citations.append(
                        Source(title=note.get("title") or "Source", uri=note.get("url") or "")
                    )
    return RawModelResponse(text="".join(parts), citations=citations)


class WebSearchChannel:
    """
    Web-grounded model channel.

    Args:
        provider: Search provider to use (OPENAI or TAVILY).
        model: Chat model used to answer. Defaults to ``ChatOpenAI`` with
            ``ETFSCOPE_MODEL`` (or ``gpt-4o-mini``).
        openai_api_key: OpenAI API key (defaults to OPENAI_API_KEY env var).
        tavily_api_key: Tavily API key (defaults to TAVILY_API_KEY env var).
            Required for the TAVILY provider.
        max_results: Tavily results per query.
        debug: Sets this module's logger to DEBUG.
    """

    def __init__(
        self,
        provider: SearchProvider = SearchProvider.OPENAI,
        model: Optional[BaseChatModel] = None,
        openai_api_key: Optional[str] = None,
        tavily_api_key: Optional[str] = None,
        max_results: int = 5,
        debug: bool = False,
    ) -> None:
        if debug:
            logger.setLevel(logging.DEBUG)
            if not logger.handlers:
                logger.addHandler(logging.StreamHandler())

        self.provider = provider
        self.max_results = max_results

        if model is None:
            openai_key = openai_api_key or os.getenv("OPENAI_API_KEY")
            if not openai_key:
                raise ValueError(
                    "WebSearchChannel requires an OpenAI API key when no model is given. "
                    "Pass openai_api_key= or set the OPENAI_API_KEY environment variable."
                )
            model = ChatOpenAI(
                model=os.getenv("ETFSCOPE_MODEL", DEFAULT_MODEL),
                api_key=openai_key,
            )
        self._model = model

        self._tavily: Optional[TavilySearch] = None
        if provider == SearchProvider.TAVILY:
            tavily_key = tavily_api_key or os.getenv("TAVILY_API_KEY")
            if not tavily_key:
                raise ValueError(
                    "The TAVILY provider requires a Tavily API key. "
                    "Pass tavily_api_key= or set the TAVILY_API_KEY environment variable."
                )
            self._tavily = TavilySearch(
                max_results=max_results,
                topic="finance",
                tavily_api_key=tavily_key,
            )
            self._llm = model
        elif provider == SearchProvider.OPENAI:
            self._llm = model.bind_tools([{"type": "web_search_preview"}])
        else:
            raise ValueError(f"Unknown provider: {provider}")

        logger.debug("WebSearchChannel initialized | provider=%s", provider.value)

    def query(self, prompt: str, search_terms: Optional[str] = None) -> RawModelResponse:
        """
        Send ``prompt`` to the model with web search enabled.

        Args:
            prompt: Full instruction text for the model.
            search_terms: Short search phrase for providers that search before
                prompting (TAVILY). Defaults to the prompt itself.

        Raises:
            RuntimeError: If the search or model call fails.
        """
        try:
            if self.provider == SearchProvider.TAVILY:
                return self._query_tavily(prompt, search_terms)
            return self._query_openai(prompt)
        except Exception as exc:
            logger.error("query | %s call failed: %s", self.provider.value, exc, exc_info=True)
            raise RuntimeError(f"{self.provider.value} search failed: {exc}") from exc

    def _query_openai(self, prompt: str) -> RawModelResponse:
        response = self._llm.invoke(prompt)
        result = _content_to_response(getattr(response, "content", ""))
        logger.debug(
            "_query_openai | text length=%d citations=%d",
            len(result.text),
            len(result.citations),
        )
        return result

    def _query_tavily(self, prompt: str, search_terms: Optional[str]) -> RawModelResponse:
        # Tavily caps query length at 400 characters.
        terms = (search_terms or prompt).strip()[:400]
        search_response = self._tavily.invoke({"query": terms})
        results = []
        if isinstance(search_response, dict):
            results = search_response.get("results", [])
        elif isinstance(search_response, list):
            results = search_response
        results = [r for r in results if isinstance(r, dict)][: self.max_results]

        source_blocks = [
            f"[{i}] {r.get('title', '')}\n    Source: {r.get('url', '')}\n    {r.get('content', '')}"
            for i, r in enumerate(results, 1)
        ]
        grounded_prompt = (
            f"{prompt}\n\n"
            f"Use ONLY the search results below.\n\n"
            f"SEARCH RESULTS:\n" + "\n\n".join(source_blocks)
        )
        response = self._llm.invoke(grounded_prompt)
        answer = _content_to_response(getattr(response, "content", ""))
        citations = [
            Source(title=r.get("title") or "Source", uri=r.get("url") or "") for r in results
        ]
        logger.debug(
            "_query_tavily | results=%d text length=%d", len(results), len(answer.text)
        )
        return RawModelResponse(text=answer.text, citations=citations)
