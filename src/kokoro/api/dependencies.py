"""
API Dependencies

Service wiring and request authentication for the HTTP layer.

ARCHITECTURE: Services are constructed once per application in the
lifespan handler (see build_services) and injected into endpoints.
There are no module-level service singletons; tests install their
own AppServices with doubles on app.state.

SECURITY: Tokens are issued elsewhere. This layer only verifies the
signature and reads the user id claim.
"""

from dataclasses import dataclass
from typing import Optional

import jwt
from fastapi import Depends, Header, Request

from kokoro.api.middleware.error_handler import ApiError
from kokoro.config import Settings, get_settings
from kokoro.config.logging_config import get_logger
from kokoro.infrastructure.llm.provider_chain import ProviderChain
from kokoro.infrastructure.llm.provider_factory import build_provider_chain
from kokoro.infrastructure.memory.memu_client import MemUClient
from kokoro.infrastructure.tasks.background_runner import BackgroundTaskRunner
from kokoro.services.memory.archiver import ConversationArchiver
from kokoro.services.memory.context_gateway import ContextEnrichmentGateway
from kokoro.services.orchestration.stream_composer import StreamComposer
from kokoro.services.prompt.prompt_builder import PromptBuilder
from kokoro.services.safety.crisis_classifier import LexicalCrisisClassifier
from kokoro.services.safety.safety_messages import SafetyResponseGenerator

logger = get_logger(__name__)


@dataclass
class AppServices:
    """Everything the endpoints need, built once per application."""

    composer: StreamComposer
    memory_client: MemUClient
    safety_generator: SafetyResponseGenerator
    provider_chain: ProviderChain
    task_runner: BackgroundTaskRunner


def build_services(settings: Optional[Settings] = None) -> AppServices:
    """Construct the production service graph from settings."""
    settings = settings or get_settings()
    chat = settings.chat

    memory_client = MemUClient()
    safety_generator = SafetyResponseGenerator(
        default_locale=chat.default_locale,
        config_path=chat.crisis_contacts_path,
    )
    provider_chain = build_provider_chain(settings)
    task_runner = BackgroundTaskRunner()

    composer = StreamComposer(
        provider_chain=provider_chain,
        context_gateway=ContextEnrichmentGateway(
            memory_client,
            max_items=settings.memu.retrieve_limit,
            timeout_seconds=chat.enrichment_timeout_seconds,
        ),
        archiver=ConversationArchiver(
            memory_client,
            max_attempts=chat.archive_retry_attempts,
        ),
        task_runner=task_runner,
        classifier=LexicalCrisisClassifier.from_file(chat.crisis_keywords_path),
        safety_generator=safety_generator,
        prompt_builder=PromptBuilder(
            max_tokens=chat.max_output_tokens,
            temperature=chat.temperature,
        ),
        fallback=provider_chain.fallback,
        locale=chat.default_locale,
    )

    return AppServices(
        composer=composer,
        memory_client=memory_client,
        safety_generator=safety_generator,
        provider_chain=provider_chain,
        task_runner=task_runner,
    )


def get_services(request: Request) -> AppServices:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise RuntimeError("Application services not initialized")
    return services


def get_composer(services: AppServices = Depends(get_services)) -> StreamComposer:
    return services.composer


def get_memory_client(services: AppServices = Depends(get_services)) -> MemUClient:
    return services.memory_client


def get_safety_generator(services: AppServices = Depends(get_services)) -> SafetyResponseGenerator:
    return services.safety_generator


def get_current_user_id(authorization: Optional[str] = Header(default=None)) -> str:
    """
    Verify the bearer token and return the user id.

    Raises:
        ApiError: 401 when no token is sent, 403 when it does not verify
    """
    token = None
    if authorization:
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            token = credentials.strip()

    if not token:
        raise ApiError(401, "Access token required")

    jwt_settings = get_settings().jwt
    try:
        claims = jwt.decode(
            token,
            jwt_settings.secret_key.get_secret_value(),
            algorithms=[jwt_settings.algorithm],
        )
    except jwt.PyJWTError as e:
        logger.info("Token verification failed", error_type=type(e).__name__)
        raise ApiError(403, "Invalid or expired token") from e

    user_id = claims.get(jwt_settings.user_id_claim) or claims.get("sub")
    if not user_id:
        raise ApiError(403, "Invalid or expired token")

    return str(user_id)
