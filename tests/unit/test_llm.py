"""Tests for the Gemini LLM client (retries, circuit breaker, fence stripping)."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from appraisal_docs.retrieval import llm
from appraisal_docs.retrieval.llm import CircuitBreaker, generate_text, strip_code_fences


@pytest.fixture(autouse=True)
def _fresh_breaker():
    llm._breakers["Gemini"] = CircuitBreaker()
    yield
    llm._breakers["Gemini"] = CircuitBreaker()


@pytest.fixture
def mock_settings():
    with patch("appraisal_docs.retrieval.llm.settings") as mock:
        mock.gemini_api_key = "test_gemini_key"
        mock.gemini_model = "gemini-2.5-pro"
        yield mock


def _ok(content: str = "# Report", usage: dict | None = None) -> MagicMock:
    resp = MagicMock()
    resp.json.return_value = {"choices": [{"message": {"content": content}}], "usage": usage or {}}
    resp.raise_for_status = MagicMock()
    return resp


def _status_error(status: int) -> httpx.HTTPStatusError:
    error = httpx.HTTPStatusError("error", request=MagicMock(), response=MagicMock(status_code=status))
    error.response.text = "upstream said no"
    return error


def _mock_client(side_effect) -> AsyncMock:
    client = AsyncMock()
    client.post = AsyncMock(side_effect=side_effect)
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=False)
    return client


class TestCircuitBreaker:
    def test_opens_at_threshold(self):
        breaker = CircuitBreaker(failure_threshold=2, reset_seconds=60)
        breaker.record_failure()
        assert breaker.allow_request()
        breaker.record_failure()
        assert breaker.state == "open"
        assert not breaker.allow_request()

    def test_half_open_after_reset_window(self):
        breaker = CircuitBreaker(failure_threshold=1, reset_seconds=0)
        breaker.record_failure()
        assert breaker.state == "half_open"
        assert breaker.allow_request()

    def test_success_closes(self):
        breaker = CircuitBreaker(failure_threshold=1, reset_seconds=60)
        breaker.record_failure()
        breaker.record_success()
        assert breaker.state == "closed"


class TestGenerateText:
    @pytest.mark.asyncio
    async def test_success(self, mock_settings):
        client = _mock_client([_ok("# Filled")])
        with patch("appraisal_docs.retrieval.llm.httpx.AsyncClient", return_value=client):
            result = await generate_text("fill this")

        assert result == "# Filled"
        payload = client.post.call_args.kwargs["json"]
        assert payload["model"] == "gemini-2.5-pro"
        assert payload["messages"] == [{"role": "user", "content": "fill this"}]
        assert client.post.call_args.kwargs["headers"]["Authorization"] == "Bearer test_gemini_key"

    @pytest.mark.asyncio
    async def test_no_api_key(self):
        with patch("appraisal_docs.retrieval.llm.settings") as mock:
            mock.gemini_api_key = ""
            assert await generate_text("fill this") is None

    @pytest.mark.asyncio
    async def test_retries_server_errors(self, mock_settings):
        client = _mock_client([_status_error(503), _status_error(429), _ok("# Third time")])
        with patch("appraisal_docs.retrieval.llm.httpx.AsyncClient", return_value=client), \
             patch("appraisal_docs.retrieval.llm.BASE_DELAY", 0):
            result = await generate_text("fill this")

        assert result == "# Third time"
        assert client.post.call_count == 3

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self, mock_settings):
        client = _mock_client([_status_error(400), _ok()])
        with patch("appraisal_docs.retrieval.llm.httpx.AsyncClient", return_value=client):
            assert await generate_text("fill this") is None
        assert client.post.call_count == 1
        assert llm._breakers["Gemini"]._failure_count == 1

    @pytest.mark.asyncio
    async def test_timeouts_exhaust_attempts(self, mock_settings):
        timeout = httpx.ReadTimeout("slow")
        client = _mock_client([timeout, timeout, timeout])
        with patch("appraisal_docs.retrieval.llm.httpx.AsyncClient", return_value=client), \
             patch("appraisal_docs.retrieval.llm.BASE_DELAY", 0):
            assert await generate_text("fill this") is None
        assert client.post.call_count == llm.MAX_RETRIES

    @pytest.mark.asyncio
    async def test_malformed_response(self, mock_settings):
        resp = MagicMock()
        resp.json.return_value = {"choices": []}
        resp.raise_for_status = MagicMock()
        client = _mock_client([resp])
        with patch("appraisal_docs.retrieval.llm.httpx.AsyncClient", return_value=client):
            assert await generate_text("fill this") is None

    @pytest.mark.asyncio
    async def test_empty_content(self, mock_settings):
        client = _mock_client([_ok("")])
        with patch("appraisal_docs.retrieval.llm.httpx.AsyncClient", return_value=client):
            assert await generate_text("fill this") is None

    @pytest.mark.asyncio
    async def test_open_breaker_skips_call(self, mock_settings):
        llm._breakers["Gemini"] = CircuitBreaker(failure_threshold=1, reset_seconds=600)
        llm._breakers["Gemini"].record_failure()
        client = _mock_client([_ok()])
        with patch("appraisal_docs.retrieval.llm.httpx.AsyncClient", return_value=client):
            assert await generate_text("fill this") is None
        client.post.assert_not_called()


class TestStripCodeFences:
    def test_markdown_fence(self):
        assert strip_code_fences("```markdown\n# Title\nBody\n```") == "# Title\nBody"

    def test_bare_fence(self):
        assert strip_code_fences("```\n# Title\n```") == "# Title"

    def test_no_fence(self):
        assert strip_code_fences("  # Title  ") == "# Title"
