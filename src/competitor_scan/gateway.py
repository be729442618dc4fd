"""Completion gateway: the pipeline's only view of the LLM provider."""

import asyncio
from functools import lru_cache
from typing import Any, Protocol

import httpx
from anthropic import APIConnectionError, APITimeoutError, AsyncAnthropic
from pydantic_ai import Agent
from pydantic_ai.exceptions import ModelAPIError, ModelHTTPError, UnexpectedModelBehavior
from pydantic_ai.models.anthropic import AnthropicModel
from pydantic_ai.providers.anthropic import AnthropicProvider
from pydantic_ai.settings import ModelSettings

from competitor_scan.config import API_KEY_ENV, GatewaySettings
from competitor_scan.exceptions import ProviderUnavailableError
from competitor_scan.logging import get_logger
from competitor_scan.models import CompletionRequest, CompletionResult
from competitor_scan.prompts import SYSTEM_INSTRUCTIONS

log = get_logger("competitor_scan.gateway")


class CompletionGateway(Protocol):
    """Anything that can turn a CompletionRequest into a CompletionResult."""

    async def complete(self, request: CompletionRequest) -> CompletionResult: ...


def create_analysis_agent(model: Any) -> Agent[None, str]:
    """Uncached factory - use with TestModel for tests."""
    return Agent(
        model,
        instructions=SYSTEM_INSTRUCTIONS,
        output_type=str,
        instrument=True,
        name="analysis_agent",
    )


@lru_cache(maxsize=4)
def get_analysis_agent(model_name: str, api_key: str) -> Agent[None, str]:
    """Cached getter for production. The SDK client never retries on its own."""
    client = AsyncAnthropic(api_key=api_key, max_retries=0)
    model = AnthropicModel(model_name, provider=AnthropicProvider(anthropic_client=client))
    return create_analysis_agent(model)


def clear_agent_cache() -> None:
    get_analysis_agent.cache_clear()


def _classify_http_status(status_code: int) -> str:
    if status_code in (401, 403):
        return "authentication"
    if status_code == 429:
        return "rate_limited"
    return "provider_error"


class AgentCompletionGateway:
    """CompletionGateway backed by a pydantic-ai agent.

    Provider and transport failures come back as failed CompletionResults; any
    other exception propagates so the pipeline can report it as unknown.
    """

    def __init__(self, settings: GatewaySettings | None = None, *, agent: Agent[None, str] | None = None) -> None:
        self.settings = settings or GatewaySettings.from_env()
        self._agent = agent

    def _resolve_agent(self, request: CompletionRequest) -> Agent[None, str]:
        return self._agent or get_analysis_agent(request.model, self.settings.api_key)

    async def complete(self, request: CompletionRequest) -> CompletionResult:
        if self._agent is None and not self.settings.is_configured:
            log.error("gateway.not_configured", env_var=API_KEY_ENV)
            return CompletionResult.failure(ProviderUnavailableError("not_configured", f"{API_KEY_ENV} is not set"))

        agent = self._resolve_agent(request)
        try:
            run = await asyncio.wait_for(
                agent.run(request.prompt, model_settings=ModelSettings(max_tokens=request.max_tokens)),
                timeout=self.settings.timeout_seconds,
            )
        except (asyncio.TimeoutError, APITimeoutError) as e:
            return self._failed("timeout", e)
        except ModelHTTPError as e:
            return self._failed(_classify_http_status(e.status_code), e)
        except ModelAPIError as e:
            # The model wraps SDK connection and timeout errors; the cause tells them apart.
            reason = "timeout" if isinstance(e.__cause__, APITimeoutError) else "transport_error"
            return self._failed(reason, e)
        except (APIConnectionError, httpx.TransportError) as e:
            return self._failed("transport_error", e)
        except UnexpectedModelBehavior as e:
            return self._failed("provider_error", e)

        text = run.output
        if not text or not text.strip():
            return self._failed("empty_response", None)
        return CompletionResult.success(text)

    def _failed(self, reason: str, exc: Exception | None) -> CompletionResult:
        detail = f"{type(exc).__name__}: {exc}" if exc is not None else ""
        log.warning("gateway.completion_failed", reason=reason, detail=detail)
        return CompletionResult.failure(ProviderUnavailableError(reason, detail))
