from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from services.sentiment_analyzer.handler import (
    SentimentAnalysisHandler,
    html_response,
    render_page,
)

router = APIRouter()

FORM_BODY = """<form action="/sentiment" method="POST">
<textarea name="message" rows="4" cols="60"></textarea>
<br/>
<input type="submit" value="Analyze"/>
</form>"""


def get_handler(request: Request) -> SentimentAnalysisHandler:
    return request.app.state.handler


@router.get("/", response_class=HTMLResponse)
async def index():
    """Form for submitting a message"""
    return html_response(render_page("Sentiment Analysis", FORM_BODY))


@router.post("/sentiment", response_class=HTMLResponse)
async def analyze_sentiment(
    request: Request, handler: SentimentAnalysisHandler = Depends(get_handler)
):
    """Score the submitted message and render it as HTML"""
    return await handler.handle(request)
