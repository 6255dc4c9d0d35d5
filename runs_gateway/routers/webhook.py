"""
Inbound email webhook.

Receives messages from the mail forwarding service. Every request that
passes the token check gets the same "ok" acknowledgement; outcomes are
reported to the sender by email, so the forwarder never retries.
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.concurrency import run_in_threadpool

from runs_gateway.config import GatewayConfig, SettingsStore
from runs_gateway.core.database import Database
from runs_gateway.core.logging import get_logger
from runs_gateway.core.models import InboundEmail
from runs_gateway.processors.inbound import InboundProcessor, verify_token
from runs_gateway.services.repository import PostgresRunRepository, RunRepository

log = get_logger(__name__)

router = APIRouter()


def get_settings_store() -> SettingsStore:
    return Database()


def get_repository() -> RunRepository:
    return PostgresRunRepository()


def get_config(store: SettingsStore = Depends(get_settings_store)) -> GatewayConfig:
    """Fresh configuration for every message."""
    return GatewayConfig.load(store)


def get_processor(
    config: GatewayConfig = Depends(get_config),
    repository: RunRepository = Depends(get_repository),
) -> InboundProcessor:
    return InboundProcessor(config, repository)


async def read_payload(request: Request) -> dict[str, Any]:
    """JSON object body, or {} for an empty, malformed or non-object body."""
    try:
        data = await request.json()
    except ValueError as e:
        log.warning("webhook_body_not_json", error=str(e))
        return {}
    if not isinstance(data, dict):
        log.warning("webhook_body_not_object", body_type=type(data).__name__)
        return {}
    return data


@router.post("/incoming")
async def receive_email(
    request: Request,
    token: str = Query(default=""),
    config: GatewayConfig = Depends(get_config),
    processor: InboundProcessor = Depends(get_processor),
):
    """
    Process one inbound email.

    Runs the whole pipeline before responding. Only a bad token is
    reported in the HTTP response.
    """
    if not verify_token(config, token):
        log.warning("invalid_webhook_token")
        raise HTTPException(status_code=403, detail="Forbidden")

    payload = await read_payload(request)

    try:
        email = InboundEmail.from_payload(payload)
        result = await run_in_threadpool(processor.process, email)
        log.info(
            "inbound_processed",
            action=result.action,
            command=result.command.value if result.command else None,
            success=result.success,
        )
    except Exception as e:
        log.exception("inbound_pipeline_error", error=str(e))

    return {"status": "ok"}
