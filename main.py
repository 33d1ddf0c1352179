import asyncio
import logging
import os
from contextlib import asynccontextmanager, suppress
from typing import List, Optional

from fastapi import FastAPI, Request

from controllers.update_controller import BotServices, handle_telegram_update
from dal.content_store import ContentStore
from routes.telegram_route import router as telegram_router
from services import messages
from services.commit.build_trigger import BuildTrigger
from services.commit.coordinator import CommitCoordinator
from services.commit.deletion import DeletionExecutor
from services.commit.gate import CommitGate
from services.commit.materializer import PostMaterializer
from services.conversation.session_actor import PostSessionActor
from services.conversation.session_store import SessionStore
from services.telegram.bot_transport import TelegramTransport
from services.telegram.poller import UpdatePoller
from services.transport import ChatTransport
from utils.settings import Settings

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
)
LOGGER = logging.getLogger(__name__)


def build_services(settings: Settings, transport: ChatTransport, bot=None) -> BotServices:
    """Wire the content store, commit pipeline and session registry together."""
    store = ContentStore(settings.content_dir)
    store.ensure_root()
    gate = CommitGate()
    build = BuildTrigger(settings.build_command, settings.build_workdir, transport)
    coordinator = CommitCoordinator(
        gate=gate,
        materializer=PostMaterializer(store, transport.fetch_attachment),
        deletion=DeletionExecutor(store),
        build=build,
        transport=transport,
    )

    def _new_session(chat_id: int) -> PostSessionActor:
        return PostSessionActor(
            chat_id,
            transport,
            coordinator,
            idle_timeout=settings.idle_timeout,
            bot_username=settings.bot_username,
        )

    sessions = SessionStore(_new_session, evict_after=settings.session_evict_after)
    return BotServices(
        settings=settings,
        transport=transport,
        store=store,
        gate=gate,
        build=build,
        sessions=sessions,
        bot=bot,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan manager to initialize:
      - the Telegram transport (token from TELEGRAM_BOT_TOKEN)
      - the content directory, commit gate and session registry
      - background tasks for session eviction and, optionally, long polling
    and attach them to `app.state`.
    """
    services: Optional[BotServices] = getattr(app.state, "bot_services", None)
    transport: Optional[TelegramTransport] = None
    if services is None:
        settings = Settings.from_env()
        transport = TelegramTransport.from_token(settings.bot_token)
        try:
            await transport.start()
        except Exception as exc:
            raise RuntimeError("Failed to initialize the Telegram bot client") from exc
        if not settings.bot_username:
            settings.bot_username = await transport.bot_username()
        services = build_services(settings, transport, bot=transport.bot)
        app.state.bot_services = services
        await transport.register_commands(messages.COMMANDS)

    tasks: List[asyncio.Task] = [asyncio.create_task(services.sessions.run_periodic_eviction())]
    if transport is not None and services.settings.use_polling:

        async def _on_update(update):
            await handle_telegram_update(services, update)

        await transport.drop_webhook()
        tasks.append(asyncio.create_task(UpdatePoller(transport, _on_update).run()))
        LOGGER.info("Polling Telegram for updates")

    try:
        yield
    finally:
        for task in tasks:
            task.cancel()
        for task in tasks:
            with suppress(asyncio.CancelledError):
                await task
        # Let queued messages and any running commit finish before actors go away.
        await services.sessions.drain()
        await services.gate.wait_idle()
        services.sessions.close_all()
        await services.build.wait_all()
        if transport is not None:
            try:
                await transport.stop()
            except Exception:
                LOGGER.warning("Error while shutting down the Telegram client", exc_info=True)


def create_app(services: Optional[BotServices] = None) -> FastAPI:
    """
    Create and configure the FastAPI application instance.

    Pre-built `services` skip environment configuration and are used as is.
    """
    app = FastAPI(lifespan=lifespan)
    app.state.bot_services = services

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check reporting configuration and commit state.
        """
        current: Optional[BotServices] = getattr(request.app.state, "bot_services", None)
        if current is None:
            return {"ok": False, "configured": False}
        return {
            "ok": True,
            "configured": True,
            "content_dir": str(current.store.root),
            "build_configured": current.build.configured,
            "committing": current.gate.committing,
            "sessions": len(current.sessions),
        }

    # Register application routers
    app.include_router(telegram_router)

    return app


app = create_app()
