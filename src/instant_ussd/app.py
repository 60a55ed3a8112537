"""FastAPI application factory and router for the USSD gateway."""

from fastapi import Depends, FastAPI, Response
from fastapi.responses import PlainTextResponse
from loguru import logger

from .config import Settings
from .dispatch import InstantUssd, MenuRegistry
from .logging import append_exchange_async, configure_logging
from .models import SessionRecord, UssdRequest
from .responders import build_default_registry, load_registry
from .session import clear_menus_served

# Global settings instance (set by create_app or overridden in tests)
_settings: Settings | None = None


def get_settings() -> Settings:
    """Dependency to get current settings."""
    if _settings is None:
        return Settings()
    return _settings


def create_app(settings: Settings | None = None, registry: MenuRegistry | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings instance. If None, defaults are used.
        registry: Optional menu registry. If None, the registry named by
            ``settings.menus`` is loaded, falling back to the default menus.

    Returns:
        Configured FastAPI application.
    """
    global _settings
    _settings = settings or Settings()
    configure_logging(_settings.verbose)

    if registry is None:
        if _settings.menus:
            registry = load_registry(_settings.menus)
            logger.info(f"Loaded menus from {_settings.menus}")
        else:
            registry = build_default_registry(_settings)
            logger.info("No menus configured, using default menus")

    gateway = InstantUssd(_settings, registry)

    app = FastAPI(
        title="Instant USSD",
        description="A stateless USSD gateway that re-derives navigation from the full input history.",
        version="0.1.0",
    )

    @app.post("/ussd", response_class=PlainTextResponse)
    async def ussd(
        payload: UssdRequest,
        settings: Settings = Depends(get_settings),
    ) -> PlainTextResponse:
        """Handle a gateway callback.

        Reduces the input history, dispatches it to the menus and returns
        the screen as ``CON ...`` or ``END ...`` text.
        """
        session_id = payload.session_id
        logger.info(
            f"[{session_id}] → Received request: service_code={payload.service_code}, text={payload.text!r}"
        )

        result = gateway.handle(payload)

        if settings.log_exchanges:
            try:
                await append_exchange_async(settings, result)
            except IOError as e:
                logger.error(f"[{session_id}] Failed to write log: {e}")

        return PlainTextResponse(result.reply.render())

    @app.post("/reduce")
    async def reduce(payload: UssdRequest) -> SessionRecord:
        """Return the session record for a request without dispatching it."""
        return gateway.service.process(payload)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok"}

    @app.post("/sessions", status_code=200)
    async def reset_sessions() -> Response:
        """Forget the menus served to every session."""
        clear_menus_served()
        logger.info("Cleared in-memory menus-served map via /sessions endpoint")
        return Response(status_code=200)

    return app
