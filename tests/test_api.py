"""Tests for API endpoints."""

import json
from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient, ASGITransport

from intent_relay.api.app import app
from intent_relay.api.dependencies import get_services
from intent_relay.api.routes.streaming import until_disconnect
from intent_relay.config import Settings
from intent_relay.core.chat import ToolCall
from intent_relay.core.errors import GenerationFailure
from intent_relay.core.relay import RelayEncoder
from intent_relay.services import Services, build_services


@pytest.fixture(autouse=True)
def cleanup():
    """Clean up after each test."""
    yield
    app.dependency_overrides.clear()


@pytest.fixture
async def client() -> AsyncClient:
    """Create test client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def use_backends(scripted_backend):
    """Install services built on scripted backends."""

    def install(classifier=None, generator=None, timeout: float = 30.0) -> Services:
        services = build_services(
            Settings(_env_file=None, request_timeout_seconds=timeout),
            classifier_backend=classifier or scripted_backend(),
            generator_backend=generator or scripted_backend(),
        )
        app.dependency_overrides[get_services] = lambda: services
        return services

    return install


def _frames(body: str) -> list[dict]:
    return [json.loads(line) for line in body.splitlines() if line.strip()]


class TestHealthEndpoints:
    """Test health check endpoints."""

    @pytest.mark.asyncio
    async def test_health_check(self, client: AsyncClient) -> None:
        """Test health endpoint returns healthy."""
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "version" in data

    @pytest.mark.asyncio
    async def test_readiness_check(self, client: AsyncClient, use_backends) -> None:
        """Test readiness endpoint."""
        use_backends()
        response = await client.get("/ready")

        assert response.status_code == 200
        data = response.json()
        assert data["ready"] is True
        assert data["registries"] == {
            "stream-object": 4,
            "generate-object-smart": 4,
            "generate-object": 5,
        }


class TestConfigEndpoints:
    """Test configuration endpoints."""

    @pytest.mark.asyncio
    async def test_get_config(self, client: AsyncClient) -> None:
        """Test getting configuration."""
        response = await client.get("/api/config")

        assert response.status_code == 200
        data = response.json()
        assert "backend_provider" in data
        assert "gemini" in data["available_providers"]
        assert data["labels"]["stream-object"] == ["recipe", "person", "product", "story"]
        assert data["tools"] == ["getWeather", "getCityInfo"]
        assert data["max_tool_steps"] == 5
        assert "google_api_key" not in data


class TestStreamObjectEndpoint:
    """Test POST /api/stream-object."""

    @pytest.mark.asyncio
    async def test_curry_prompt(
        self, client: AsyncClient, use_backends, scripted_backend, curry_json, curry_recipe, chunker
    ) -> None:
        """Test that a cooking prompt streams a recipe."""
        use_backends(
            classifier=scripted_backend(labels=["recipe"]),
            generator=scripted_backend(chunks=chunker(curry_json, 13)),
        )

        response = await client.post("/api/stream-object", json={"prompt": "How do I make curry?"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert response.headers["cache-control"] == "no-cache"
        frames = _frames(response.text)
        assert frames[0] == {"type": "intent", "intent": "recipe"}
        assert frames[-1] == {"type": "complete"}
        assert frames[-2]["data"] == curry_recipe
        assert all(f["type"] == "partial" for f in frames[1:-1])

    @pytest.mark.asyncio
    async def test_unknown_intent(self, client: AsyncClient, use_backends, scripted_backend) -> None:
        """Test that an unclassifiable prompt is a 400 before streaming."""
        generator = scripted_backend()
        use_backends(classifier=scripted_backend(labels=["weather", "weather"]), generator=generator)

        response = await client.post("/api/stream-object", json={"prompt": "asdkjh qwe"})

        assert response.status_code == 400
        assert response.json()["error"].startswith("Unknown intent: 'weather'")
        assert generator.calls == []

    @pytest.mark.asyncio
    async def test_classifier_failure(self, client: AsyncClient, use_backends, scripted_backend) -> None:
        """Test that a failing classifier is a 400."""
        use_backends(classifier=scripted_backend(error=GenerationFailure("quota exceeded")))

        response = await client.post("/api/stream-object", json={"prompt": "How do I make curry?"})

        assert response.status_code == 400
        assert response.json() == {"error": "Could not determine intent: quota exceeded"}

    @pytest.mark.asyncio
    async def test_classifier_timeout(self, client: AsyncClient, use_backends, scripted_backend) -> None:
        """Test that a stalled classifier hits the request deadline."""
        use_backends(
            classifier=scripted_backend(labels=["recipe"], delay=1.0),
            timeout=0.05,
        )

        response = await client.post("/api/stream-object", json={"prompt": "How do I make curry?"})

        assert response.status_code == 500
        assert "timed out" in response.json()["error"]

    @pytest.mark.asyncio
    async def test_generation_failure_mid_stream(
        self, client: AsyncClient, use_backends, scripted_backend
    ) -> None:
        """Test that a failure after streaming starts ends with an error frame."""
        use_backends(
            classifier=scripted_backend(labels=["story"]),
            generator=scripted_backend(
                chunks=['{"story": {"title": "The Fox", '],
                error=GenerationFailure("Connection error: reset by peer"),
            ),
        )

        response = await client.post("/api/stream-object", json={"prompt": "A fox who learns to fly"})

        assert response.status_code == 200
        frames = _frames(response.text)
        assert frames[0] == {"type": "intent", "intent": "story"}
        assert frames[-1]["type"] == "error"
        assert frames[-1]["code"] == "GENERATION_FAILED"
        assert not any(f["type"] == "complete" for f in frames)

    @pytest.mark.asyncio
    async def test_empty_prompt(self, client: AsyncClient, use_backends) -> None:
        """Test that an empty prompt is rejected."""
        use_backends()
        response = await client.post("/api/stream-object", json={"prompt": "   "})

        assert response.status_code == 422


class TestGenerateObjectSmartEndpoint:
    """Test POST /api/generate-object-smart."""

    @pytest.mark.asyncio
    async def test_person(self, client: AsyncClient, use_backends, scripted_backend, einstein) -> None:
        """Test intent-routed blocking generation."""
        use_backends(
            classifier=scripted_backend(labels=["person"]),
            generator=scripted_backend(objects=[einstein]),
        )

        response = await client.post(
            "/api/generate-object-smart", json={"prompt": "Who was Albert Einstein?"}
        )

        assert response.status_code == 200
        assert response.json() == {"type": "person", "data": einstein}

    @pytest.mark.asyncio
    async def test_general_question(self, client: AsyncClient, use_backends, scripted_backend) -> None:
        """Test a text answer."""
        use_backends(
            classifier=scripted_backend(labels=["general-question"]),
            generator=scripted_backend(text="Paris"),
        )

        response = await client.post(
            "/api/generate-object-smart", json={"prompt": "What is the capital of France?"}
        )

        assert response.status_code == 200
        assert response.json() == {"type": "general-question", "data": {"answer": "Paris"}}

    @pytest.mark.asyncio
    async def test_invalid_object(self, client: AsyncClient, use_backends, scripted_backend) -> None:
        """Test that an object failing validation is a 500 with details."""
        use_backends(
            classifier=scripted_backend(labels=["person"]),
            generator=scripted_backend(objects=[{"person": {"name": "Einstein"}}]),
        )

        response = await client.post(
            "/api/generate-object-smart", json={"prompt": "Who was Albert Einstein?"}
        )

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "Failed to generate valid object"
        assert "Einstein" in data["details"]["text"]


class TestGenerateObjectEndpoint:
    """Test POST /api/generate-object."""

    @pytest.mark.asyncio
    async def test_invalid_type(self, client: AsyncClient, use_backends) -> None:
        """Test that an unknown type is a 400."""
        use_backends()
        response = await client.post("/api/generate-object", json={"type": "poem"})

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid type"}

    @pytest.mark.asyncio
    async def test_recipe_with_default_prompt(
        self, client: AsyncClient, use_backends, scripted_backend, curry_recipe
    ) -> None:
        """Test generating a recipe without a prompt."""
        generator = scripted_backend(objects=[curry_recipe])
        use_backends(generator=generator)

        response = await client.post("/api/generate-object", json={"type": "recipe"})

        assert response.status_code == 200
        assert response.json() == {"object": curry_recipe, "type": "recipe"}
        assert generator.calls == [("object", "Generate a lasagna recipe.")]

    @pytest.mark.asyncio
    async def test_classification(self, client: AsyncClient, use_backends, scripted_backend) -> None:
        """Test the enum output type."""
        use_backends(generator=scripted_backend(labels=["positive"]))

        response = await client.post(
            "/api/generate-object", json={"type": "classification", "prompt": "Great product!"}
        )

        assert response.status_code == 200
        assert response.json() == {"object": "positive", "type": "classification"}

    @pytest.mark.asyncio
    async def test_backend_failure(self, client: AsyncClient, use_backends, scripted_backend) -> None:
        """Test that a backend failure is a 500."""
        use_backends(generator=scripted_backend(error=GenerationFailure("Gemini API error 503")))

        response = await client.post("/api/generate-object", json={"type": "no-schema"})

        assert response.status_code == 500
        assert response.json() == {"error": "Gemini API error 503"}


class TestTextEndpoints:
    """Test text generation endpoints."""

    @pytest.mark.asyncio
    async def test_generating_text(self, client: AsyncClient, use_backends, scripted_backend) -> None:
        """Test article summaries."""
        use_backends(generator=scripted_backend(text="A short summary."))

        response = await client.post("/api/generating-text", json={"article": "A long article."})

        assert response.status_code == 200
        assert response.json() == {"text": "A short summary."}

    @pytest.mark.asyncio
    async def test_stream_text(self, client: AsyncClient, use_backends, scripted_backend) -> None:
        """Test streamed text frames."""
        use_backends(generator=scripted_backend(deltas=["Once ", "upon ", "a time"]))

        response = await client.post("/api/stream-text", json={"prompt": "Tell me a story"})

        assert response.status_code == 200
        frames = _frames(response.text)
        assert "".join(f["data"]["text"] for f in frames if f["type"] == "text-delta") == (
            "Once upon a time"
        )
        assert frames[-1] == {"type": "finish"}

    @pytest.mark.asyncio
    async def test_stream_text_with_tools(self, client: AsyncClient, use_backends, scripted_backend) -> None:
        """Test that tool calls and results are streamed with the text."""
        call = ToolCall(id="call_1", name="getCityInfo", args={"city": "Kyoto"})
        use_backends(generator=scripted_backend(turns=[[call], ["Kyoto is famous for temples."]]))

        with patch("intent_relay.services.tools.asyncio.sleep", new=AsyncMock()):
            response = await client.post("/api/stream-text", json={"prompt": "Tell me about Kyoto"})

        assert response.status_code == 200
        frames = _frames(response.text)
        assert [f["type"] for f in frames] == ["tool-call", "tool-result", "text-delta", "finish"]
        assert frames[0]["data"] == {"toolCallId": "call_1", "toolName": "getCityInfo", "args": {"city": "Kyoto"}}
        result = frames[1]["data"]["result"]
        assert result["city"] == "Kyoto"
        assert result["famousFor"] == "Tourism and culture"


class DisconnectingRequest:
    """Request stand-in that reports a disconnect after ``connected_checks`` checks."""

    def __init__(self, connected_checks: int) -> None:
        self.connected_checks = connected_checks
        self.checks = 0

    async def is_disconnected(self) -> bool:
        self.checks += 1
        return self.checks > self.connected_checks


class TestUntilDisconnect:
    """Test the transport guard around streamed responses."""

    @pytest.mark.asyncio
    async def test_stops_and_closes_relay(self) -> None:
        """Test that frames stop at the disconnect and the relay is closed."""
        state = {"produced": 0, "closed": False}

        async def frames():
            try:
                for i in range(10):
                    state["produced"] += 1
                    yield f'{{"n": {i}}}\n'.encode()
            finally:
                state["closed"] = True

        request = DisconnectingRequest(connected_checks=3)
        received = [frame async for frame in until_disconnect(request, frames())]

        assert received == [b'{"n": 0}\n', b'{"n": 1}\n', b'{"n": 2}\n']
        assert state["produced"] == 4
        assert state["closed"] is True

    @pytest.mark.asyncio
    async def test_connected_client_gets_everything(self) -> None:
        """Test that a connected client receives the whole relay."""

        async def frames():
            yield b"a\n"
            yield b"b\n"

        received = [frame async for frame in until_disconnect(DisconnectingRequest(10), frames())]

        assert received == [b"a\n", b"b\n"]

    @pytest.mark.asyncio
    async def test_disconnect_closes_backend_stream(self) -> None:
        """Test that a disconnect mid text relay closes the backend deltas."""
        state = {"closed": False}

        async def deltas():
            try:
                for word in ["one ", "two ", "three ", "four "]:
                    yield word
            finally:
                state["closed"] = True

        frames = RelayEncoder().relay_text(deltas())
        received = [frame async for frame in until_disconnect(DisconnectingRequest(2), frames)]

        assert [json.loads(frame)["data"]["text"] for frame in received] == ["one ", "two "]
        assert state["closed"] is True
