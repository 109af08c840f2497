from typing import Any, cast

from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator

from glassrental import __version__

from .config import ServiceSettings
from .tracing import configure_tracing


def instrument_app(app: FastAPI, settings: ServiceSettings) -> None:
    """Publish HTTP metrics on ``/metrics`` when enabled and keep settings on app state.

    Status codes are reported individually so stock conflicts (409) stay
    distinguishable from missing records (404).
    """

    if settings.enable_metrics:
        instrumentator = Instrumentator(
            should_group_status_codes=False,
            excluded_handlers=["/health", "/metrics"],
        )
        instrumentator.instrument(app).expose(app, include_in_schema=False)

    state = cast(Any, app.state)
    state.settings = settings


def build_app(settings: ServiceSettings, **extra_kwargs: Any) -> FastAPI:
    app = FastAPI(title=settings.app_name, version=__version__, **extra_kwargs)
    instrument_app(app, settings)
    configure_tracing(app, settings)
    return app
