"""OpenTelemetry tracing setup for the Gatekeeper API"""

import logging

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter, SpanExporter
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased
from sqlalchemy.ext.asyncio import AsyncEngine

from src.infrastructure.config.settings import Settings

logger = logging.getLogger(__name__)

EXPORTERS = ("console", "otlp", "none")


class TelemetryConfig:
    """
    Tracer provider owned by the running application.

    Spans created by @traced (credential.issue, credential.verify, ...) only
    leave the process once this is set up; without it the API tracer is a
    no-op. Envelopes are never attached to spans.
    """

    def __init__(self, service_name: str, service_version: str):
        self.service_name = service_name
        self.service_version = service_version
        self.tracer_provider: TracerProvider | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "TelemetryConfig":
        return cls(settings.app_name, settings.app_version)

    def _build_exporter(self, exporter_type: str, otlp_endpoint: str | None) -> SpanExporter | None:
        if exporter_type == "otlp":
            if not otlp_endpoint:
                logger.warning("OTLP exporter selected without endpoint, using console")
                return ConsoleSpanExporter()
            return OTLPSpanExporter(
                endpoint=otlp_endpoint, insecure=otlp_endpoint.startswith("http://")
            )
        if exporter_type == "none":
            return None
        if exporter_type != "console":
            logger.warning("Unknown exporter type '%s', using console", exporter_type)
        return ConsoleSpanExporter()

    def setup(
        self,
        exporter_type: str = "console",
        otlp_endpoint: str | None = None,
        sample_rate: float = 1.0,
    ) -> TracerProvider:
        """
        Install a global tracer provider.

        Args:
            exporter_type: "console", "otlp" or "none"
            otlp_endpoint: OTLP gRPC endpoint (e.g. "http://localhost:4317")
            sample_rate: fraction of root traces kept (0.0-1.0)
        """
        resource = Resource(
            attributes={SERVICE_NAME: self.service_name, SERVICE_VERSION: self.service_version}
        )
        self.tracer_provider = TracerProvider(
            resource=resource, sampler=ParentBased(TraceIdRatioBased(sample_rate))
        )

        exporter = self._build_exporter(exporter_type, otlp_endpoint)
        if exporter is not None:
            self.tracer_provider.add_span_processor(BatchSpanProcessor(exporter))

        trace.set_tracer_provider(self.tracer_provider)
        logger.info(
            "OpenTelemetry initialized: service=%s exporter=%s sample_rate=%s",
            self.service_name,
            exporter_type,
            sample_rate,
        )
        return self.tracer_provider

    def instrument_fastapi(self, app: FastAPI) -> None:
        """Trace HTTP requests (health checks excluded)"""
        if not self.tracer_provider:
            return
        FastAPIInstrumentor.instrument_app(
            app, tracer_provider=self.tracer_provider, excluded_urls="/health"
        )
        logger.info("FastAPI instrumentation enabled")

    def instrument_sqlalchemy(self, engine: AsyncEngine) -> None:
        """Trace database statements of the async engine"""
        if not self.tracer_provider:
            return
        SQLAlchemyInstrumentor().instrument(
            engine=engine.sync_engine, tracer_provider=self.tracer_provider
        )
        logger.info("SQLAlchemy instrumentation enabled")

    def shutdown(self) -> None:
        """Flush remaining spans"""
        if self.tracer_provider:
            self.tracer_provider.shutdown()
            logger.info("Telemetry shutdown complete")


# Global telemetry instance
_telemetry: TelemetryConfig | None = None


def get_telemetry() -> TelemetryConfig | None:
    """Get global telemetry instance"""
    return _telemetry


def set_telemetry(telemetry: TelemetryConfig | None):
    """Set global telemetry instance"""
    global _telemetry
    _telemetry = telemetry
