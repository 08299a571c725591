import logging
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from campus_wellness.api.deps import get_chat_orchestrator
from campus_wellness.core.clock import utcnow
from campus_wellness.core.config import settings
from campus_wellness.core.rate_limiter import enforce_rate_limit
from campus_wellness.schemas.chat import ChatRequest, ChatResponse
from campus_wellness.services.chat_service import APOLOGY_MESSAGE, SLOW_DOWN_MESSAGE, ChatOrchestrator

router = APIRouter(prefix="/chat", tags=["chat"])
logger = logging.getLogger(__name__)


@router.post("", response_model=ChatResponse, status_code=status.HTTP_200_OK)
def chat(
    payload: ChatRequest,
    request: Request,
    response: Response,
    orchestrator: ChatOrchestrator = Depends(get_chat_orchestrator),
) -> ChatResponse:
    try:
        enforce_rate_limit(
            scope="chat",
            request=request,
            limit=settings.chat_max_requests,
            window_seconds=settings.chat_rate_limit_window_seconds,
        )
    except HTTPException as exc:
        # Throttled chat still answers 200; the orchestrator is not called.
        throttle_headers = exc.headers or {}
        logger.warning("chat_rate_limited retry_after=%s", throttle_headers.get("Retry-After"))
        response.headers.update(throttle_headers)
        return ChatResponse(response=SLOW_DOWN_MESSAGE, conversation_id=str(uuid4()), timestamp=utcnow())

    try:
        text = orchestrator.respond(
            message=payload.message,
            history=payload.conversation_history,
            biometrics=payload.biometric_data,
        ).text
    except Exception:
        logger.exception("chat_failed")
        text = APOLOGY_MESSAGE

    return ChatResponse(response=text, conversation_id=str(uuid4()), timestamp=utcnow())
