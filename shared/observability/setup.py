import logging
import uuid

import structlog
from fastapi import FastAPI, Request
from prometheus_fastapi_instrumentator import Instrumentator

# OpenTelemetry
from opentelemetry import trace
from opentelemetry.sdk.resources import Resource, SERVICE_NAME
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from shared.config.settings import LOG_LEVEL, OTLP_ENDPOINT, TRACING_ENABLED

# Probes and scrapes: neither traced nor counted in request metrics
UNTRACKED_PATHS = ("/metrics", "/health")

REQUEST_ID_HEADER = "X-Request-ID"


def add_otel_ids(logger, log_method, event_dict):
    span = trace.get_current_span()
    if span.is_recording():
        ctx = span.get_span_context()
        event_dict["trace_id"] = trace.format_trace_id(ctx.trace_id)
        event_dict["span_id"] = trace.format_span_id(ctx.span_id)
    return event_dict


def add_service_name(service_name: str):
    def processor(logger, log_method, event_dict):
        event_dict.setdefault("service", service_name)
        return event_dict

    return processor


def configure_logging(service_name: str, level: str = LOG_LEVEL):
    """JSON lines on stdout; request-scoped fields come in through contextvars."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            add_service_name(service_name),
            add_otel_ids,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level, logging.INFO)),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def bind_request_context(app: FastAPI):
    """Every log line emitted while serving a request carries its id, method and path."""

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def configure_tracing(app: FastAPI, service_name: str):
    resource = Resource.create({SERVICE_NAME: service_name})
    provider = TracerProvider(resource=resource)
    trace.set_tracer_provider(provider)

    exporter = OTLPSpanExporter(endpoint=OTLP_ENDPOINT, insecure=True)
    provider.add_span_processor(BatchSpanProcessor(exporter))

    FastAPIInstrumentor.instrument_app(app, excluded_urls=",".join(UNTRACKED_PATHS))


def configure_metrics(app: FastAPI):
    # HTTP latency and status codes per route; business counters live in metrics.py
    Instrumentator(excluded_handlers=list(UNTRACKED_PATHS)).instrument(app).expose(
        app, include_in_schema=False
    )


def setup_observability(app: FastAPI, service_name: str):
    """
    Bootstraps logging, tracing and metrics for the app.
    Call this once per process, from create_app().
    """
    configure_logging(service_name)
    bind_request_context(app)
    if TRACING_ENABLED:
        configure_tracing(app, service_name)
    configure_metrics(app)
