import html
import time
from typing import Optional

from fastapi import Request
from fastapi.responses import HTMLResponse

from services.sentiment_analyzer.exceptions import SentimentClientError
from services.sentiment_analyzer.factory import SentimentClientFactory
from services.sentiment_analyzer.schemas import AnalysisRequest, SentimentResult
from shared.logger import get_logger

logger = get_logger(__name__)

HTML_CONTENT_TYPE = "text/html;"
MESSAGE_FIELD = "message"


def html_response(body: str, status_code: int = 200) -> HTMLResponse:
    """HTMLResponse whose content type header is set once, to text/html;"""
    # An explicit header stops starlette from adding its own charset variant
    return HTMLResponse(
        content=body,
        status_code=status_code,
        headers={"Content-Type": HTML_CONTENT_TYPE},
    )


def render_page(title: str, body: str) -> str:
    return (
        "<!doctype html>\n"
        "<html>\n"
        f"<head><title>{html.escape(title)}</title></head>\n"
        f"<body>\n<h1>{html.escape(title)}</h1>\n{body}\n</body>\n"
        "</html>\n"
    )


def render_result(request: AnalysisRequest, result: SentimentResult) -> str:
    body = (
        f"<p>You entered: {html.escape(request.text)}</p>\n"
        f"<p>Sentiment analysis score: {result.score}</p>"
    )
    if result.magnitude is not None:
        body += f"\n<p>Sentiment magnitude: {result.magnitude}</p>"
    return render_page("Sentiment Analysis", body)


def render_error(message: str, status_code: int) -> HTMLResponse:
    return html_response(
        render_page("Sentiment Analysis", f"<p>{html.escape(message)}</p>"),
        status_code=status_code,
    )


class SentimentAnalysisHandler:
    """Handles one analysis request: read the message, score it, render HTML"""

    def __init__(self, client_factory: SentimentClientFactory):
        self.client_factory = client_factory

    async def read_message(self, request: Request) -> Optional[str]:
        """The message from the form body, or from the query string"""
        form = await request.form()
        message = form.get(MESSAGE_FIELD)
        if isinstance(message, str):
            return message
        return request.query_params.get(MESSAGE_FIELD)

    async def handle(self, request: Request) -> HTMLResponse:
        message = await self.read_message(request)
        if not message:
            logger.warning("Analysis request without a message")
            return render_error("Please enter a message to analyze.", 400)

        analysis_request = AnalysisRequest(text=message)
        logger.info("Analysis request received", text_length=len(message))

        try:
            start_time = time.time()
            client = await self.client_factory.get_client()
            result = await client.analyze_sentiment(analysis_request.text)
            duration_ms = (time.time() - start_time) * 1000
        except SentimentClientError as e:
            logger.error(
                "Sentiment analysis failed",
                error=str(e),
                error_type=type(e).__name__,
                text_length=len(message),
            )
            return render_error(
                "Sentiment analysis is currently unavailable.", e.status_code
            )
        except Exception as e:
            logger.error(
                "Sentiment client raised an unexpected error",
                error=str(e),
                error_type=type(e).__name__,
                text_length=len(message),
                exc_info=True,
            )
            return render_error("Sentiment analysis failed.", 502)

        logger.info(
            "Sentiment analysis completed",
            score=result.score,
            duration_ms=round(duration_ms, 2),
        )
        return html_response(render_result(analysis_request, result))
