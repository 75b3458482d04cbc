import logging
from typing import Any, Dict

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.jaeger.thrift import JaegerExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Span

logger = logging.getLogger(__name__)

EXCLUDED_URLS = r"^/health(?:$|/.*)"


def _server_request_hook(span: Span, scope: Dict[str, Any]) -> None:
    if not span or not span.is_recording():
        return

    path_params = scope.get("path_params") or {}
    for key in ("tenant_id", "fiscal_year_id", "unit_id"):
        if key in path_params:
            span.set_attribute(f"org.{key}", str(path_params[key]))

    query_string = scope.get("query_string")
    if query_string:
        span.set_attribute("http.request.query_string", query_string[:2048].decode("utf-8", errors="replace"))


def initialize_tracer(
        service_name: str, fastapi_app: FastAPI,
        jaeger_host: str = "jaeger-agent.jaeger.svc.cluster.local", jaeger_port: int = 6831
) -> TracerProvider:
    tracer_provider = TracerProvider(resource=Resource.create({SERVICE_NAME: service_name}))
    tracer_provider.add_span_processor(
        BatchSpanProcessor(JaegerExporter(agent_host_name=jaeger_host, agent_port=jaeger_port))
    )
    trace.set_tracer_provider(tracer_provider)

    FastAPIInstrumentor().instrument_app(
        fastapi_app,
        tracer_provider=tracer_provider,
        server_request_hook=_server_request_hook,
        excluded_urls=EXCLUDED_URLS,
    )

    logger.info(f"Tracer initialized for {service_name}: {jaeger_host}:{jaeger_port}")
    return tracer_provider
