import logging

from fastapi import FastAPI, Form, HTTPException
from fastapi.responses import HTMLResponse

from reply_helper import views
from reply_helper.config import get_provider
from reply_helper.orchestrator import EMPTY_INPUT_MESSAGE, suggest_reply
from reply_helper.schemas import ConfigStatus, Notice, RequestOutcome, SuggestReplyRequest

logger = logging.getLogger(__name__)

app = FastAPI(title="Customer Conversation Helper", version="0.1.0")


@app.get("/health")
def health():
    return {"ok": True}


@app.get("/", response_class=HTMLResponse)
def index():
    return HTMLResponse(views.render_page())


@app.post("/", response_class=HTMLResponse)
def submit(customer_email: str = Form("")):
    if not customer_email.strip():
        return HTMLResponse(
            views.render_page(email_text=customer_email, notices=[Notice(level="error", message=EMPTY_INPUT_MESSAGE)]),
            status_code=400,
        )

    outcome = suggest_reply(customer_email)
    return HTMLResponse(views.render_page(outcome, email_text=customer_email, notices=outcome.notices))


@app.post("/suggest-reply", response_model=RequestOutcome)
def suggest_reply_api(req: SuggestReplyRequest):
    if not req.customer_email.strip():
        raise HTTPException(status_code=400, detail=EMPTY_INPUT_MESSAGE)
    return suggest_reply(req.customer_email)


@app.post("/config/refresh", response_model=ConfigStatus)
def refresh_config():
    provider = get_provider()
    for warning in provider.refresh_config():
        logger.warning("Config refresh: %s", warning)

    config = provider.get_config()
    return ConfigStatus(
        endpoint_url=config.endpoint_url,
        has_search_api_key=bool(config.search_api_key),
        has_model_api_key=bool(config.model_api_key),
        timeout_ms=config.timeout_ms,
        missing=config.missing_keys(),
    )


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(app, host="0.0.0.0", port=8000)
