"""Tests for the LLM client used by page generation."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from memberpages.llm.schemas import LLMError, LLMMessage
from memberpages.llm.service import LLMService, get_llm_service


@pytest.fixture
def llm_settings():
    """Patch settings with a configured LLM endpoint."""
    settings = MagicMock()
    settings.llm_api_key = "sk-test-key"
    settings.llm_base_url = "https://llm.example.com/v1"
    settings.llm_default_model = "test-model"
    settings.llm_temperature = 0.7
    settings.llm_max_tokens = 1024
    with patch("memberpages.llm.service.get_settings", return_value=settings):
        yield settings


def _completion(content: str, model: str = "test-model") -> MagicMock:
    response = MagicMock()
    response.status_code = 200
    response.json.return_value = {
        "model": model,
        "choices": [{"message": {"role": "assistant", "content": content}}],
        "usage": {"prompt_tokens": 7, "completion_tokens": 3, "total_tokens": 10},
    }
    response.raise_for_status = MagicMock()
    return response


class TestLLMSchemas:
    """Tests for LLM schemas."""

    def test_error_optional_status(self):
        """Test LLMError works without a status code."""
        err = LLMError(error_type="network_error", message="Connection refused")
        assert err.status_code is None

    def test_message_role_checked(self):
        """Test unknown roles are rejected."""
        with pytest.raises(ValueError):
            LLMMessage(role="tool", content="x")


class TestLLMServiceChat:
    """Tests for LLMService.chat()."""

    @patch("memberpages.llm.service.get_settings")
    def test_unconfigured(self, mock_settings):
        """Test an empty key leaves the client unconfigured."""
        mock_settings.return_value = MagicMock(llm_api_key="")
        assert LLMService().configured is False

    @pytest.mark.asyncio
    @patch("memberpages.llm.service.get_settings")
    async def test_chat_not_configured(self, mock_settings):
        """Test chat refuses to run without a key."""
        mock_settings.return_value = MagicMock(llm_api_key="")
        with pytest.raises(ValueError, match="not_configured"):
            await LLMService().chat([LLMMessage(role="user", content="Hi")])

    @pytest.mark.asyncio
    async def test_chat_success(self, llm_settings):
        """Test a completion is parsed into LLMResponse."""
        with patch(
            "httpx.AsyncClient.post", new_callable=AsyncMock, return_value=_completion("Hello")
        ) as mock_post:
            result = await LLMService().chat([LLMMessage(role="user", content="Hi")])

        assert result.content == "Hello"
        assert result.usage["total_tokens"] == 10
        assert mock_post.call_args.args[0] == "https://llm.example.com/v1/chat/completions"
        assert mock_post.call_args.kwargs["headers"]["Authorization"] == "Bearer sk-test-key"
        payload = mock_post.call_args.kwargs["json"]
        assert payload["model"] == "test-model"
        assert payload["max_tokens"] == 1024

    @pytest.mark.asyncio
    async def test_chat_overrides(self, llm_settings):
        """Test per-call model and sampling overrides are sent."""
        with patch(
            "httpx.AsyncClient.post",
            new_callable=AsyncMock,
            return_value=_completion("ok", model="other-model"),
        ) as mock_post:
            result = await LLMService().chat(
                [LLMMessage(role="user", content="Hi")],
                model="other-model",
                temperature=0.0,
                max_tokens=128,
            )

        payload = mock_post.call_args.kwargs["json"]
        assert payload["model"] == "other-model"
        assert payload["temperature"] == 0.0
        assert payload["max_tokens"] == 128
        assert result.model == "other-model"

    @pytest.mark.asyncio
    async def test_chat_api_error(self, llm_settings):
        """Test HTTP errors become api_error."""
        response = MagicMock()
        response.status_code = 429
        response.text = "Rate limit exceeded"
        response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "429 Too Many Requests", request=MagicMock(), response=response
        )

        with patch("httpx.AsyncClient.post", new_callable=AsyncMock, return_value=response):
            with pytest.raises(ValueError, match="api_error"):
                await LLMService().chat([LLMMessage(role="user", content="Hi")])

    @pytest.mark.asyncio
    async def test_chat_network_error(self, llm_settings):
        """Test connection failures become network_error."""
        with patch(
            "httpx.AsyncClient.post",
            new_callable=AsyncMock,
            side_effect=httpx.ConnectError("Connection refused"),
        ):
            with pytest.raises(ValueError, match="network_error"):
                await LLMService().chat([LLMMessage(role="user", content="Hi")])

    @pytest.mark.asyncio
    async def test_chat_without_choices(self, llm_settings):
        """Test a body without a message is invalid_output."""
        response = MagicMock()
        response.json.return_value = {"choices": []}
        response.raise_for_status = MagicMock()

        with patch("httpx.AsyncClient.post", new_callable=AsyncMock, return_value=response):
            with pytest.raises(ValueError, match="invalid_output"):
                await LLMService().chat([LLMMessage(role="user", content="Hi")])


class TestLLMServiceAsk:
    """Tests for ask() and ask_json()."""

    @pytest.mark.asyncio
    async def test_ask_with_system_prompt(self, llm_settings):
        """Test the system prompt is sent before the user prompt."""
        with patch(
            "httpx.AsyncClient.post", new_callable=AsyncMock, return_value=_completion("answer")
        ) as mock_post:
            result = await LLMService().ask("Plan a page", system_prompt="You design pages.")

        assert result == "answer"
        messages = mock_post.call_args.kwargs["json"]["messages"]
        assert [m["role"] for m in messages] == ["system", "user"]
        assert messages[0]["content"] == "You design pages."

    @pytest.mark.asyncio
    async def test_ask_without_system_prompt(self, llm_settings):
        """Test only the user prompt is sent by default."""
        with patch(
            "httpx.AsyncClient.post", new_callable=AsyncMock, return_value=_completion("ok")
        ) as mock_post:
            await LLMService().ask("Hello")

        assert [m["role"] for m in mock_post.call_args.kwargs["json"]["messages"]] == ["user"]

    @pytest.mark.asyncio
    async def test_ask_json(self, llm_settings):
        """Test a plain JSON answer is decoded."""
        with patch(
            "httpx.AsyncClient.post",
            new_callable=AsyncMock,
            return_value=_completion('{"title": "Lesson"}'),
        ):
            assert await LLMService().ask_json("x") == {"title": "Lesson"}

    @pytest.mark.asyncio
    async def test_ask_json_code_fence(self, llm_settings):
        """Test a fenced JSON answer is decoded."""
        answer = '```json\n{"title": "Lesson", "sections": []}\n```'
        with patch("httpx.AsyncClient.post", new_callable=AsyncMock, return_value=_completion(answer)):
            data = await LLMService().ask_json("x")
        assert data == {"title": "Lesson", "sections": []}

    @pytest.mark.asyncio
    async def test_ask_json_not_json(self, llm_settings):
        """Test prose answers are invalid_output."""
        with patch(
            "httpx.AsyncClient.post",
            new_callable=AsyncMock,
            return_value=_completion("Sure! Here is a page."),
        ):
            with pytest.raises(ValueError, match="invalid_output"):
                await LLMService().ask_json("x")

    @pytest.mark.asyncio
    async def test_ask_json_not_object(self, llm_settings):
        """Test a JSON list is rejected."""
        with patch(
            "httpx.AsyncClient.post", new_callable=AsyncMock, return_value=_completion("[1, 2]")
        ):
            with pytest.raises(ValueError, match="not a JSON object"):
                await LLMService().ask_json("x")


class TestGetLLMService:
    """Tests for the get_llm_service() singleton."""

    def test_returns_same_instance(self):
        """Test repeated calls share one client."""
        import memberpages.llm.service as svc

        svc._llm_service = None
        with patch("memberpages.llm.service.get_settings") as mock_settings:
            mock_settings.return_value = MagicMock(llm_api_key="")
            first = get_llm_service()
            assert isinstance(first, LLMService)
            assert get_llm_service() is first
        svc._llm_service = None
