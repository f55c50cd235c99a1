from typing import Optional

from companion_core.config.environments import Settings, get_settings
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from companion_relay.adapters.api.errors import register_error_handlers
from companion_relay.adapters.api.routes import router
from companion_relay.adapters.live.endpoint import router as live_router
from companion_relay.adapters.web.spa import mount_dashboard
from companion_relay.relay import Relay


def create_app(settings: Optional[Settings] = None, relay: Optional[Relay] = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(title="Air Quality Companion Relay")
    app.state.relay = relay or Relay.create(settings.HISTORY_CAPACITY)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)
    app.include_router(router)
    app.include_router(live_router)
    mount_dashboard(app, settings.DASHBOARD_DIR)
    return app


app = create_app()
