from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from printbridge import __version__
from printbridge.config import Settings, configure_logging, get_settings
from printbridge.controllers.print_job import PrintJobOrchestrator
from printbridge.controllers.serial_transport import SerialTransport
from printbridge.services import EscPosCommandBuilder, TsplCommandBuilder, TsplOptions
from printbridge.services.printer_store import LastPrinterStore, SqlLastPrinterStore
from printbridge.services.stream_opener import StreamOpener
from printbridge.views import health_router, printer_router, printing_router, ws_router


def create_app(
    *,
    database_url: str | None = None,
    settings: Settings | None = None,
    opener: StreamOpener | None = None,
    store: LastPrinterStore | None = None,
) -> FastAPI:
    """Build the application and its single printer transport.

    Args:
        database_url: Overrides the configured database for the last-printer store
        settings: Overrides the environment settings
        opener: Overrides how the byte stream to the printer is opened
        store: Overrides the last-printer store
    """
    settings = settings or get_settings()

    # Configure logging first
    configure_logging(settings.log_level)

    if store is None:
        from printbridge.database import configure_database
        configure_database(database_url or settings.database_url)
        store = SqlLastPrinterStore()

    transport = SerialTransport(store, opener=opener, settings=settings)
    tspl = TsplCommandBuilder(TsplOptions.from_settings(settings))

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if settings.auto_connect_on_startup:
            await transport.auto_connect()
        yield
        await transport.close()

    app = FastAPI(
        title="printbridge",
        version=__version__,
        description="Thermal label (TSPL) and receipt (ESC/POS) printing over a Bluetooth serial link.",
        lifespan=lifespan,
    )

    # Configure CORS
    cors_env = settings.cors_allowed_origins.strip()
    if cors_env == "*" or cors_env == "":
        allowed_origins = ["*"]
    else:
        allowed_origins = [o.strip() for o in cors_env.split(",") if o.strip()]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.transport = transport
    app.state.tspl = tspl
    app.state.escpos = EscPosCommandBuilder(settings)
    app.state.orchestrator = PrintJobOrchestrator(transport, tspl)

    # Include all routers by type
    app.include_router(health_router)
    app.include_router(printer_router)
    app.include_router(printing_router)
    app.include_router(ws_router)

    return app
