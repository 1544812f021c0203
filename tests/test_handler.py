import pytest
from fastapi.testclient import TestClient

from services.sentiment_analyzer.app import create_app
from services.sentiment_analyzer.exceptions import (
    SentimentBackendError,
    SentimentBackendTimeout,
    SentimentBackendUnavailable,
)
from services.sentiment_analyzer.factory import StaticSentimentClientFactory
from services.sentiment_analyzer.schemas import SentimentResult
from tests.conftest import FakeSentimentClient


def make_client(fake: FakeSentimentClient) -> TestClient:
    return TestClient(create_app(client_factory=StaticSentimentClientFactory(fake)))


def test_post_includes_score_in_response(client, fake_client):
    """The message is handed to the sentiment client and its score is rendered"""
    response = client.post("/sentiment", data={"message": "some message"})

    assert response.status_code == 200
    assert "0.3" in response.text
    assert fake_client.calls == ["some message"]


def test_content_type_is_set_once(client):
    response = client.post("/sentiment", data={"message": "some message"})

    assert response.headers.get_list("content-type") == ["text/html;"]


def test_message_from_query_string(client, fake_client):
    response = client.post("/sentiment", params={"message": "some message"})

    assert response.status_code == 200
    assert "0.3" in response.text
    assert fake_client.calls == ["some message"]


@pytest.mark.parametrize(
    "message,score",
    [
        ("  padded with spaces  ", -0.8),
        ("I love this!", 0.9),
        ("ünïcödé ✓", 0.0),
        ("<b>not bold</b> & more", -0.25),
        ("line one\nline two", 0.5),
    ],
)
def test_message_reaches_client_unchanged(message, score):
    fake = FakeSentimentClient({message: score})

    response = make_client(fake).post("/sentiment", data={"message": message})

    assert response.status_code == 200
    assert fake.calls == [message]
    assert str(score) in response.text


def test_message_is_escaped_in_body():
    message = "<script>alert(1)</script>"
    fake = FakeSentimentClient({message: 0.1})

    response = make_client(fake).post("/sentiment", data={"message": message})

    assert "<script>" not in response.text
    assert "&lt;script&gt;" in response.text


def test_repeated_requests_give_same_response(client, fake_client):
    first = client.post("/sentiment", data={"message": "some message"})
    second = client.post("/sentiment", data={"message": "some message"})

    assert first.text == second.text
    assert first.headers["content-type"] == second.headers["content-type"]
    assert fake_client.calls == ["some message", "some message"]


def test_magnitude_rendered_when_present():
    class MagnitudeClient:
        async def analyze_sentiment(self, text):
            return SentimentResult(score=0.4, magnitude=1.5)

    app = create_app(client_factory=StaticSentimentClientFactory(MagnitudeClient()))
    response = TestClient(app).post("/sentiment", data={"message": "hello"})

    assert "0.4" in response.text
    assert "1.5" in response.text


def test_missing_message_is_rejected(client, fake_client):
    response = client.post("/sentiment")

    assert response.status_code == 400
    assert response.headers.get_list("content-type") == ["text/html;"]
    assert fake_client.calls == []


def test_empty_message_is_rejected(client, fake_client):
    response = client.post("/sentiment", data={"message": ""})

    assert response.status_code == 400
    assert fake_client.calls == []


@pytest.mark.parametrize(
    "error,status_code",
    [
        (SentimentBackendUnavailable("connection refused"), 503),
        (SentimentBackendTimeout("took too long"), 504),
        (SentimentBackendError("bad reply", backend_status=500), 502),
        (RuntimeError("boom"), 502),
    ],
)
def test_backend_failure_renders_degraded_page(error, status_code):
    fake = FakeSentimentClient({}, error=error)

    response = make_client(fake).post("/sentiment", data={"message": "hello"})

    assert response.status_code == status_code
    assert response.headers.get_list("content-type") == ["text/html;"]
    assert "unavailable" in response.text or "failed" in response.text
    assert "</html>" in response.text


def test_factory_failure_renders_degraded_page():
    class BrokenFactory:
        async def get_client(self):
            raise SentimentBackendUnavailable("no credentials")

        async def aclose(self):
            return None

    response = TestClient(create_app(client_factory=BrokenFactory())).post(
        "/sentiment", data={"message": "hello"}
    )

    assert response.status_code == 503
    assert response.headers.get_list("content-type") == ["text/html;"]
