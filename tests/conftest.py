from typing import Dict, List

import pytest
from fastapi.testclient import TestClient

from services.sentiment_analyzer.app import create_app
from services.sentiment_analyzer.factory import StaticSentimentClientFactory
from services.sentiment_analyzer.schemas import SentimentResult


class FakeSentimentClient:
    """Scores only the texts it was told about, and remembers every call"""

    def __init__(self, scores: Dict[str, float], error: Exception | None = None):
        self.scores = scores
        self.error = error
        self.calls: List[str] = []

    async def analyze_sentiment(self, text: str) -> SentimentResult:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return SentimentResult(score=self.scores[text])


@pytest.fixture
def fake_client():
    return FakeSentimentClient({"some message": 0.3})


@pytest.fixture
def client(fake_client):
    app = create_app(client_factory=StaticSentimentClientFactory(fake_client))
    return TestClient(app)
