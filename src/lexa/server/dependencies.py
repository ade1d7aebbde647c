from __future__ import annotations

import logging

from fastapi import Request

from ..errors import FatalUpstreamError
from .auth import IdentityVerifier
from .composer import RequestComposer

logger = logging.getLogger(__name__)


def get_composer(request: Request) -> RequestComposer:
    composer: RequestComposer | None = getattr(request.app.state, "composer", None)
    if composer is None:
        logger.error("Gateway API key is not configured")
        raise FatalUpstreamError("AI service is not configured. Please contact support.")
    return composer


def get_verifier(request: Request) -> IdentityVerifier:
    verifier: IdentityVerifier | None = getattr(request.app.state, "verifier", None)
    if verifier is None:
        raise RuntimeError("Identity verifier has not been initialised")
    return verifier
