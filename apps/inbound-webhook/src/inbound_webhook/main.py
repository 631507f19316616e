"""
Inbound Messaging Webhook Service

FastAPI app that receives Twilio WhatsApp/SMS webhooks.

Responsibilities:
- Validate the Twilio signature (optional)
- Parse the form payload, including media pass-through fields
- Run the inbound pipeline
- Always return 200 unless the payload itself is malformed
"""

import functools
import logging
from typing import Any

import redis
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from condocore.db import get_db
from condocore.logging import setup_logging
from condocore.redis import get_redis_client
from condocore.settings import get_settings

from condo_messaging.contracts.payloads import InboundMessage, MediaAttachment
from condo_messaging.errors import ValidationError
from condo_messaging.providers.twilio import validate_twilio_signature
from condo_messaging.service.inbound_handler import InboundHandler, PipelineConfig, PipelineProviders

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Inbound Messaging Webhook",
    description="Receives Twilio WhatsApp/SMS webhooks and runs the inbound pipeline",
    version="1.0.0",
)


@functools.lru_cache()
def get_providers() -> PipelineProviders:
    """Providers are built once per process."""
    return PipelineProviders.from_settings(get_settings())


def get_pipeline_config() -> PipelineConfig:
    return PipelineConfig.from_settings(get_settings())


def get_redis() -> redis.Redis | None:
    settings = get_settings()
    if not settings.REDIS_URL:
        return None
    return get_redis_client()


def parse_media(form: dict[str, Any]) -> list[MediaAttachment]:
    """Collect ``MediaUrl{n}`` / ``MediaContentType{n}`` pairs."""
    try:
        count = int(form.get("NumMedia") or 0)
    except ValueError:
        count = 0

    media = []
    for idx in range(count):
        url = form.get(f"MediaUrl{idx}")
        if url:
            media.append(MediaAttachment(url=url, content_type=form.get(f"MediaContentType{idx}")))
    return media


def parse_inbound_form(form: dict[str, Any]) -> InboundMessage:
    """
    Build an InboundMessage from Twilio form fields.

    Raises:
        ValidationError: a required field is missing
    """
    missing = [
        name
        for name in ("MessageSid", "From", "To", "Body")
        if form.get(name) is None or (name != "Body" and not str(form.get(name)).strip())
    ]
    if missing:
        raise ValidationError("Missing required fields", {"missing": missing})

    return InboundMessage(
        message_sid=form["MessageSid"],
        from_address=form["From"],
        to_address=form["To"],
        body=form["Body"],
        profile_name=form.get("ProfileName"),
        media=parse_media(form),
    )


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "service": "inbound-webhook"}


@app.get("/webhooks/messaging")
async def verify_webhook():
    """Static acknowledgment used to verify the endpoint is reachable."""
    return {"status": "active"}


@app.post("/webhooks/messaging")
async def receive_message(
    request: Request,
    db: Session = Depends(get_db),
    providers: PipelineProviders = Depends(get_providers),
    config: PipelineConfig = Depends(get_pipeline_config),
    redis_client: redis.Redis | None = Depends(get_redis),
):
    """
    Receive an inbound WhatsApp/SMS message from Twilio.

    Flow:
    1. Validate signature (when enabled)
    2. Parse form fields
    3. Run the inbound pipeline
    4. Return 200 (400 only for malformed payloads)
    """
    form = dict(await request.form())
    settings = get_settings()

    if settings.TWILIO_VALIDATE_SIGNATURE:
        signature = request.headers.get("X-Twilio-Signature", "")
        if not validate_twilio_signature(settings.TWILIO_AUTH_TOKEN, str(request.url), form, signature):
            logger.warning("Invalid Twilio signature")
            return JSONResponse(status_code=403, content={"status": "forbidden"})

    try:
        message = parse_inbound_form(form)
        handler = InboundHandler(db, providers, config=config, redis_client=redis_client)
        result = await handler.process(message)
    except ValidationError as e:
        logger.warning(f"Rejected inbound webhook: {e}", extra={"details": e.details})
        return JSONResponse(status_code=400, content={"status": "invalid", "error": str(e), **e.details})
    except Exception as e:
        # Never fail the webhook; Twilio retries non-2xx responses
        logger.error(f"Error processing webhook: {e}", exc_info=True)
        return {"status": "error"}

    return result


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
