from typing import Dict, Optional

from pydantic import BaseModel, Field, model_validator


class AnalysisRequest(BaseModel):
    text: str = Field(..., description="Text to analyze, passed through unchanged")


class SentimentResult(BaseModel):
    score: float
    magnitude: Optional[float] = None


class BackendSentimentResponse(BaseModel):
    """Reply of the downstream sentiment service.

    Either a document score, or the positive/neutral/negative distribution
    returned by the platform's model services.
    """

    score: Optional[float] = None
    magnitude: Optional[float] = None
    scores: Dict[str, float] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_has_score(self):
        has_distribution = "positive" in self.scores and "negative" in self.scores
        if self.score is None and not has_distribution:
            raise ValueError("reply carries neither a score nor a distribution")
        return self

    def to_result(self) -> SentimentResult:
        if self.score is not None:
            return SentimentResult(score=self.score, magnitude=self.magnitude)
        return SentimentResult(
            score=self.scores["positive"] - self.scores["negative"],
            magnitude=self.magnitude,
        )
