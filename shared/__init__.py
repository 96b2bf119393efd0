"""
Shared utilities for the User Posts Gateway.

This package aggregates common building blocks consumed by the service:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and wire bodies
- base_service: FastAPI service skeleton with request logging and recovery

Do not import from service packages into shared/.
"""
