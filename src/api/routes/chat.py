"""
Chat ingestion trigger.

Cloud Scheduler calls POST /chat on a fixed cadence; GET is accepted for
manual runs. Each call is one invocation of the ingestion pipeline.
"""

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from src.api.dependencies import get_chat_watcher_service
from src.api.models import ChatWatchResponse, ErrorResponse
from src.chat.errors import CollaboratorError, InvalidSpanError
from src.chat.threshold import parse_span
from src.config.settings import get_settings
from src.observability.logging import request_logger
from src.observability.metrics import get_metrics
from src.services.chat_watcher import ChatWatcherService

router = APIRouter()
logger = structlog.get_logger(__name__)


def get_span(
    span: str | None = Query(
        default=None,
        description="Lookback window in minutes (0-10080, default 60)",
    ),
) -> int:
    """Parse the span query parameter; invalid values never reach the pipeline."""
    try:
        return parse_span(span)
    except InvalidSpanError as e:
        get_metrics().record_invocation("invalid")
        raise HTTPException(status_code=400, detail=e.message) from e


@router.api_route(
    "/chat",
    methods=["GET", "POST"],
    response_model=ChatWatchResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Run one chat ingestion",
    description="Fetch new live chat messages, tag sentiment and store them.",
)
async def watch_chat(
    request: Request,
    span: int = Depends(get_span),
    service: ChatWatcherService = Depends(get_chat_watcher_service),
):
    """
    Run one invocation.

    Returns 200 with a summary (status "noop" when nothing is polled),
    500 with the failing stage and source when a collaborator fails.
    """
    settings = get_settings()
    log = request_logger(
        settings.effective_service_name,
        request_id=getattr(request.state, "request_id", None),
        project_id=settings.google_cloud_project,
    )

    try:
        result = await service.run(span, log=log)
    except CollaboratorError as e:
        log.error(
            "Chat ingestion failed",
            stage=e.stage,
            source_id=e.source_id,
            error=e.message,
        )
        get_metrics().record_invocation("error")
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                detail="Chat ingestion failed",
                error_type="collaborator",
                stage=e.stage,
                source_id=e.source_id,
            ).model_dump(),
        )

    return ChatWatchResponse(**result.to_dict())
