from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.flask import FlaskInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.propagate import set_global_textmap
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

from models import db

TRACER_NAME = "quickbuy"


def get_tracer():
    return trace.get_tracer(TRACER_NAME)


def _span_exporter(app):
    if app.config.get("TESTING"):
        return ConsoleSpanExporter()
    return OTLPSpanExporter(endpoint=app.config["OTEL_EXPORTER_OTLP_ENDPOINT"])


def init_tracing(app):
    """Export request, query and checkout spans for this app."""
    env = "testing" if app.config.get("TESTING") else ("development" if app.config.get("DEBUG") else "production")
    resource = Resource.create({
        "service.name": app.config.get("OTEL_SERVICE_NAME", "quickbuy"),
        "deployment.environment": env,
    })
    ratio = float(app.config.get("OTEL_TRACES_SAMPLE_RATIO", 1.0))
    provider = TracerProvider(resource=resource, sampler=ParentBased(TraceIdRatioBased(ratio)))
    provider.add_span_processor(BatchSpanProcessor(_span_exporter(app)))
    trace.set_tracer_provider(provider)
    set_global_textmap(TraceContextTextMapPropagator())

    FlaskInstrumentor().instrument_app(app, excluded_urls="health,metrics")
    with app.app_context():
        SQLAlchemyInstrumentor().instrument(engine=db.engine, tracer_provider=provider)
