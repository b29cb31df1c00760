"""
Shared utilities for Civic Sights services.

This package aggregates common building blocks consumed by every service:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request and trace correlation
- metrics: Prometheus metrics helpers
- tracing: OpenTelemetry tracing config
- errors: Canonical error types and responses
- base_service: FastAPI scaffold (middleware, health, metrics, handlers)

Any cross-service logic should live here. Do not import from service
packages into shared/.
"""
