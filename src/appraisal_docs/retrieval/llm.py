"""LLM client — Google Gemini through its OpenAI-compatible chat completions endpoint.

Used by the LLM document path to fill the master template with appraisal
data. Failures return None; the caller decides whether to fall back.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field

import httpx

from appraisal_docs.config import settings
from appraisal_docs.observability.tracing import log_metrics, start_span, trace

# Fail fast on connect, generous on read: a filled report is a long completion
LLM_TIMEOUT = httpx.Timeout(connect=10.0, read=180.0, write=10.0, pool=5.0)

logger = logging.getLogger(__name__)

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/openai/chat/completions"

MAX_RETRIES = 3
BASE_DELAY = 1.0


# ---------------------------------------------------------------------------
# Circuit breaker
# States: closed (normal) → open (failing) → half_open (testing recovery)
# ---------------------------------------------------------------------------

@dataclass
class CircuitBreaker:
    """Per-provider circuit breaker for LLM API calls."""

    failure_threshold: int = 5
    reset_seconds: int = 60
    _failure_count: int = field(default=0, repr=False)
    _last_failure_time: float = field(default=0.0, repr=False)
    _state: str = field(default="closed", repr=False)

    @property
    def state(self) -> str:
        if self._state == "open":
            if time.monotonic() - self._last_failure_time >= self.reset_seconds:
                self._state = "half_open"
        return self._state

    def allow_request(self) -> bool:
        return self.state != "open"

    def record_success(self) -> None:
        self._failure_count = 0
        self._state = "closed"

    def record_failure(self) -> None:
        self._failure_count += 1
        self._last_failure_time = time.monotonic()
        if self._failure_count >= self.failure_threshold:
            self._state = "open"
            logger.warning(
                "Circuit breaker OPEN after %d failures (reset in %ds)",
                self._failure_count, self.reset_seconds,
            )


_breakers: dict[str, CircuitBreaker] = {
    "Gemini": CircuitBreaker(),
}


# ---------------------------------------------------------------------------
# Provider call
# ---------------------------------------------------------------------------

async def _call_provider_raw(
    client: httpx.AsyncClient,
    url: str,
    headers: dict,
    payload: dict,
    provider_name: str,
) -> dict | None:
    """Call a provider and return the raw message dict.

    Retries 429/5xx and timeouts with exponential backoff; other HTTP errors
    and malformed responses fail immediately. Token usage goes to MLflow.
    """
    if provider_name not in _breakers:
        _breakers[provider_name] = CircuitBreaker()
    breaker = _breakers[provider_name]
    if not breaker.allow_request():
        logger.info("Circuit breaker OPEN for %s, skipping", provider_name)
        return None

    with start_span(name=f"llm_provider_{provider_name.lower()}", span_type="CHAT_MODEL") as span:
        span.set_inputs({
            "provider": provider_name,
            "model": payload.get("model", ""),
            "message_count": len(payload.get("messages", [])),
        })
        retries_used = 0

        for attempt in range(MAX_RETRIES):
            last_attempt = attempt == MAX_RETRIES - 1
            try:
                resp = await client.post(url, json=payload, headers=headers)
                resp.raise_for_status()
                data = resp.json()
                message = data["choices"][0]["message"]
                logger.info("LLM response from %s (model=%s)", provider_name, payload.get("model"))

                usage = data.get("usage", {})
                prompt_tokens = usage.get("prompt_tokens", 0)
                completion_tokens = usage.get("completion_tokens", 0)
                span.set_outputs({
                    "has_content": bool(message.get("content")),
                    "retries": retries_used,
                    "prompt_tokens": prompt_tokens,
                    "completion_tokens": completion_tokens,
                })
                if prompt_tokens or completion_tokens:
                    log_metrics({
                        f"{provider_name.lower()}_prompt_tokens": float(prompt_tokens),
                        f"{provider_name.lower()}_completion_tokens": float(completion_tokens),
                        f"{provider_name.lower()}_total_tokens": float(prompt_tokens + completion_tokens),
                    })

                breaker.record_success()
                return message

            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                if (status == 429 or status >= 500) and not last_attempt:
                    retries_used += 1
                    delay = BASE_DELAY * (2 ** attempt)
                    logger.warning(
                        "%s %d (attempt %d/%d), retrying in %.1fs",
                        provider_name, status, attempt + 1, MAX_RETRIES, delay,
                    )
                    await asyncio.sleep(delay)
                    continue
                logger.error("%s error %d: %s", provider_name, status, e.response.text[:200])
                breaker.record_failure()
                span.set_outputs({"error": f"http_{status}", "retries": retries_used})
                return None
            except (KeyError, IndexError) as e:
                logger.error("Unexpected %s response structure: %s", provider_name, e)
                breaker.record_failure()
                span.set_outputs({"error": f"parse_error: {e}", "retries": retries_used})
                return None
            except httpx.TimeoutException:
                if last_attempt:
                    break
                retries_used += 1
                delay = BASE_DELAY * (2 ** attempt)
                logger.warning(
                    "%s timeout (attempt %d/%d), retrying in %.1fs",
                    provider_name, attempt + 1, MAX_RETRIES, delay,
                )
                await asyncio.sleep(delay)

        logger.error("%s failed after %d attempts", provider_name, MAX_RETRIES)
        breaker.record_failure()
        span.set_outputs({"error": "timeout", "retries": retries_used})
        return None


@trace(name="generate_text", span_type="CHAT_MODEL")
async def generate_text(prompt: str, temperature: float = 0.1, max_tokens: int = 16000) -> str | None:
    """Single-turn completion. Returns the response text, or None on failure."""
    if not settings.gemini_api_key:
        logger.error("GEMINI_API_KEY not configured")
        return None

    headers = {
        "Authorization": f"Bearer {settings.gemini_api_key}",
        "Content-Type": "application/json",
    }
    payload = {
        "model": settings.gemini_model,
        "messages": [{"role": "user", "content": prompt}],
        "temperature": temperature,
        "max_tokens": max_tokens,
    }

    async with httpx.AsyncClient(timeout=LLM_TIMEOUT) as client:
        message = await _call_provider_raw(client, GEMINI_URL, headers, payload, "Gemini")

    if not message or not message.get("content"):
        return None
    return message["content"]


def strip_code_fences(content: str) -> str:
    """Remove a ```markdown ... ``` wrapper if the model added one."""
    content = content.strip()
    if content.startswith("```"):
        content = content.split("\n", 1)[1] if "\n" in content else content[3:]
    if content.endswith("```"):
        content = content[:-3]
    return content.strip()
