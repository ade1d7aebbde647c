"""FastAPI application serving the legal chat endpoint."""

import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI, Header, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response, StreamingResponse

from ..config import CHAT_PATH, UNEXPECTED_ERROR_MESSAGE, ServerSettings
from ..errors import LexaError, ValidationError
from ..llm.base import GatewayProvider
from ..llm.factory import create_gateway_provider
from ..llm.models import RawStream
from .auth import (
    IdentityVerifier,
    StaticTokenVerifier,
    SupabaseIdentityVerifier,
    bearer_token,
)
from .composer import RequestComposer
from .dependencies import get_composer, get_verifier
from .schemas import ChatResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


async def _relay(stream: RawStream) -> AsyncIterator[bytes]:
    try:
        async for chunk in stream:
            yield chunk
    finally:
        await stream.aclose()


@router.post(CHAT_PATH)
@router.post("/api/chat")
async def legal_chat(
    request: Request,
    authorization: str | None = Header(default=None),
    verifier: IdentityVerifier = Depends(get_verifier),
) -> Response:
    try:
        user = await verifier.verify(bearer_token(authorization))
        composer = get_composer(request)

        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ValidationError("Request body must be valid JSON") from e
        chat_request = composer.parse_request(body)

        logger.info(
            "Processing legal chat request: user=%s conversation=%s messages=%d stream=%s",
            user.id,
            chat_request.conversation_id,
            len(chat_request.messages),
            chat_request.stream,
        )

        if chat_request.stream:
            stream = await composer.open_stream(chat_request)
            return StreamingResponse(
                _relay(stream),
                media_type="text/event-stream",
                headers={"Cache-Control": "no-cache"},
            )

        answer = await composer.complete(chat_request)
        return JSONResponse(ChatResponse(response=answer).model_dump())

    except LexaError as e:
        if e.status_code >= 500:
            logger.warning("Legal chat request failed: %s", e.message)
        return JSONResponse(e.to_body(), status_code=e.status_code)
    except Exception:
        logger.exception("Legal chat error")
        return JSONResponse(
            {"error": UNEXPECTED_ERROR_MESSAGE, "retry": True},
            status_code=500,
        )


def _default_verifier(settings: ServerSettings) -> IdentityVerifier:
    if settings.supabase_url and settings.supabase_anon_key:
        return SupabaseIdentityVerifier(settings.supabase_url, settings.supabase_anon_key)
    if not settings.api_tokens:
        logger.warning("No identity service or API tokens configured; all requests will be rejected")
    return StaticTokenVerifier.from_list(settings.api_tokens)


def _default_provider(settings: ServerSettings) -> GatewayProvider | None:
    if not settings.gateway_api_key:
        logger.error("LLM_API_KEY is not configured")
        return None
    return create_gateway_provider(
        "gateway",
        api_key=settings.gateway_api_key,
        model=settings.model,
        base_url=settings.gateway_url,
    )


def create_app(
    settings: ServerSettings | None = None,
    provider: GatewayProvider | None = None,
    verifier: IdentityVerifier | None = None,
) -> FastAPI:
    """Build the chat server.

    Args:
        settings: Server settings (default: read from environment)
        provider: Upstream gateway (default: built from settings)
        verifier: Identity verifier (default: Supabase if configured,
            otherwise static tokens from settings)

    Returns:
        Configured FastAPI application
    """
    settings = settings or ServerSettings.from_env()
    provider = provider or _default_provider(settings)
    verifier = verifier or _default_verifier(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if provider is not None:
            await provider.close()
        await verifier.close()

    app = FastAPI(title="LeXa Legal Chat API", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    )
    logger.info("Allowed origins: %s", settings.allowed_origins)

    app.state.verifier = verifier
    app.state.composer = None
    if provider is not None:
        app.state.composer = RequestComposer(
            provider,
            model=settings.model,
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
        )

    app.include_router(router)
    return app
