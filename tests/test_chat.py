import pytest
from pydantic import ValidationError

from openaicli.models import ChatCompletionRequest, ChatMessage


class TestChatCompletion:
    """Test chat completion requests."""

    @pytest.mark.asyncio
    async def test_chat_completion_success(
        self, client, mock_client_session, mock_response, sample_chat_response
    ):
        mock_client_session.post.return_value.__aenter__.return_value = mock_response
        mock_response.json.return_value = sample_chat_response

        request = ChatCompletionRequest(
            model="gpt-4o-mini",
            messages=[ChatMessage(role="user", content="Hello")],
            max_tokens=5000,
        )
        result = await client.create_chat_completion(request)

        assert result.model == "gpt-4o-mini"
        assert result.choices[0].message.content == "Hello, this is a test response!"
        assert result.usage.total_tokens == 12

        mock_client_session.post.assert_called_once()
        call_args = mock_client_session.post.call_args
        assert call_args[0][0] == "https://api.openai.com/v1/chat/completions"
        assert call_args[1]["headers"]["Authorization"] == "Bearer sk-test"

    @pytest.mark.asyncio
    async def test_chat_payload_omits_unset_fields(
        self, client, mock_client_session, mock_response, sample_chat_response
    ):
        mock_client_session.post.return_value.__aenter__.return_value = mock_response
        mock_response.json.return_value = sample_chat_response

        request = ChatCompletionRequest(
            model="gpt-4o-mini",
            messages=[ChatMessage(role="user", content="Hello")],
        )
        await client.create_chat_completion(request)

        payload = mock_client_session.post.call_args[1]["json"]
        assert payload == {
            "model": "gpt-4o-mini",
            "messages": [{"role": "user", "content": "Hello"}],
        }

    @pytest.mark.asyncio
    async def test_chat_payload_with_options(
        self, client, mock_client_session, mock_response, sample_chat_response
    ):
        mock_client_session.post.return_value.__aenter__.return_value = mock_response
        mock_response.json.return_value = sample_chat_response

        request = ChatCompletionRequest(
            model="gpt-4o-mini",
            messages=[ChatMessage(role="user", content="Write a sort")],
            max_tokens=5000,
            n=1,
            temperature=0.5,
        )
        await client.create_chat_completion(request)

        payload = mock_client_session.post.call_args[1]["json"]
        assert payload["max_tokens"] == 5000
        assert payload["n"] == 1
        assert payload["temperature"] == 0.5

    @pytest.mark.asyncio
    async def test_chat_with_image_parts(
        self, client, mock_client_session, mock_response, sample_chat_response
    ):
        """Vision requests send a list of content parts."""
        mock_client_session.post.return_value.__aenter__.return_value = mock_response
        mock_response.json.return_value = sample_chat_response

        parts = [
            {"type": "text", "text": "Describe this image"},
            {"type": "image_url", "image_url": {"url": "data:image/png;base64,AAAA"}},
        ]
        request = ChatCompletionRequest(
            model="gpt-4o-mini",
            messages=[ChatMessage(role="user", content=parts)],
        )
        await client.create_chat_completion(request)

        payload = mock_client_session.post.call_args[1]["json"]
        assert payload["messages"][0]["content"] == parts

    @pytest.mark.asyncio
    async def test_chat_multiple_choices(self, client, mock_client_session, mock_response):
        mock_client_session.post.return_value.__aenter__.return_value = mock_response
        mock_response.json.return_value = {
            "choices": [
                {"index": 0, "message": {"role": "assistant", "content": "one"}},
                {"index": 1, "message": {"role": "assistant", "content": "two"}},
            ]
        }

        request = ChatCompletionRequest(
            model="gpt-4o-mini",
            messages=[ChatMessage(role="user", content="Hi")],
            n=2,
        )
        result = await client.create_chat_completion(request)

        assert [c.message.content for c in result.choices] == ["one", "two"]


class TestChatRequestValidation:
    """Requests are validated before anything is sent."""

    def test_empty_model_rejected(self):
        with pytest.raises(ValidationError):
            ChatCompletionRequest(model="  ", messages=[ChatMessage(role="user", content="Hi")])

    def test_no_messages_rejected(self):
        with pytest.raises(ValidationError):
            ChatCompletionRequest(model="gpt-4o-mini", messages=[])

    def test_temperature_out_of_range(self):
        with pytest.raises(ValidationError):
            ChatCompletionRequest(
                model="gpt-4o-mini",
                messages=[ChatMessage(role="user", content="Hi")],
                temperature=3,
            )

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            ChatCompletionRequest(
                model="gpt-4o-mini",
                messages=[ChatMessage(role="user", content="Hi")],
                stream=True,
            )
