import logging
from typing import Any, cast

from fastapi import FastAPI

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (  # type: ignore[attr-defined]
    OTLPSpanExporter as OTLPGrpcExporter,
)
from opentelemetry.exporter.otlp.proto.http.trace_exporter import (  # type: ignore[attr-defined]
    OTLPSpanExporter as OTLPHttpExporter,
)
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SpanExporter
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased

from glassrental import __version__

from .config import ServiceSettings

_LOGGER = logging.getLogger(__name__)
SERVICE_NAMESPACE = "glassrental"


def _span_exporter(settings: ServiceSettings) -> SpanExporter | None:
    endpoint = settings.tracing_endpoint
    if endpoint is None:
        return None
    if settings.tracing_protocol == "grpc":
        return OTLPGrpcExporter(endpoint=endpoint, insecure=settings.tracing_insecure)
    return OTLPHttpExporter(endpoint=endpoint)


def _tracer_provider(settings: ServiceSettings) -> trace.TracerProvider:
    """Return the process-wide SDK provider, installing one on first use."""

    existing = trace.get_tracer_provider()
    if isinstance(existing, TracerProvider):
        return existing

    provider = TracerProvider(
        resource=Resource.create(
            {
                "service.name": settings.app_name,
                "service.namespace": SERVICE_NAMESPACE,
                "service.version": __version__,
                "deployment.environment": settings.environment,
            }
        ),
        sampler=ParentBased(TraceIdRatioBased(settings.tracing_sample_rate)),
    )
    exporter = _span_exporter(settings)
    if exporter is None:
        _LOGGER.warning("Tracing enabled for %s without an OTLP endpoint; spans stay in-process.", settings.app_name)
    else:
        provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)
    return trace.get_tracer_provider()


def configure_tracing(app: FastAPI, settings: ServiceSettings) -> None:
    """Instrument ``app`` with OpenTelemetry when tracing is enabled; repeated calls are no-ops."""

    state = cast(Any, app.state)
    if not settings.enable_tracing or getattr(state, "tracing_instrumented", False):
        return

    FastAPIInstrumentor().instrument_app(app, tracer_provider=_tracer_provider(settings))
    state.tracing_instrumented = True
