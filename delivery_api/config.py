"""
Configuration Module for the BebCom Delivery API
================================================

This module centralizes all configuration settings, environment variables, and
constants used throughout the delivery API. Every value is read once at module
load time and typed here, so the rest of the code imports plain constants.

Configuration Categories:
-------------------------
- **Storage**: Which availability store backs the service (in-memory map,
  JSON file, or a SQL database) and where it lives.

- **Connection Supervision**: Timeouts, retry backoff and liveness probe
  settings used by the connection supervisor.

- **Admin Authentication**: The shared admin key (or its SHA-256 digest)
  required by the bulk-update and reset endpoints.

- **Rate Limiting**: Throttling for the public payment endpoint.

- **CORS Settings**: Cross-Origin Resource Sharing configuration for the
  storefront. Defaults allow all origins.

Environment Variables:
----------------------
- STORAGE_BACKEND: "memory", "file" or "database" (default: "file")
- DATA_FILE: JSON file used by the file backend (default: "data.json")
- DATABASE_URL: SQLAlchemy URL used by the database backend
- ADMIN_KEY: Shared admin secret sent in the x-admin-key header
- ADMIN_KEY_SHA256: Hex SHA-256 digest of the admin secret (alternative)
- STORE_TIMEOUT_SECONDS: Timeout for a single store operation (default: 5)
- PROBE_INTERVAL_SECONDS: Liveness probe period (default: 30)
- RETRY_BASE_DELAY_SECONDS: Backoff unit between connect attempts (default: 2)
- RETRY_MAX_ATTEMPTS: Connect attempts per retry round (default: 5)
- RATE_LIMIT_PAYMENT: Payment endpoint rate limit (default: "30 per minute")
- CORS_ORIGINS: Comma-separated allowed origins (default: "*")

Usage:
------
    from delivery_api import config

    if config.STORAGE_BACKEND == "database":
        ...
"""

import os
from typing import List


# =============================================================================
# Service Identity
# =============================================================================

SERVICE_NAME: str = os.getenv("SERVICE_NAME", "BebCom Delivery API")
API_VERSION: str = "3.0.0"
ENVIRONMENT: str = os.getenv("ENVIRONMENT", "production")


# =============================================================================
# Server Configuration
# =============================================================================
# The platform health check expects the port to be bound almost immediately,
# so the listener never waits for the store connection.

HOST: str = os.getenv("HOST", "0.0.0.0")
PORT: int = int(os.getenv("PORT", "3000"))


# =============================================================================
# Storage Configuration
# =============================================================================

STORAGE_BACKENDS = ("memory", "file", "database")

STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "file").lower()

# Single JSON document holding both availability maps and the orders
DATA_FILE: str = os.getenv("DATA_FILE", "data.json")

# Only required when STORAGE_BACKEND == "database"
DATABASE_URL: str = os.getenv("DATABASE_URL", "")


# =============================================================================
# Connection Supervision
# =============================================================================
# Attempt n of a retry round waits n * RETRY_BASE_DELAY_SECONDS after failing.
# Once RETRY_MAX_ATTEMPTS is reached the supervisor stays disconnected until
# the next probe tick or a manual reconnect.

STORE_TIMEOUT_SECONDS: float = float(os.getenv("STORE_TIMEOUT_SECONDS", "5"))
PROBE_INTERVAL_SECONDS: float = float(os.getenv("PROBE_INTERVAL_SECONDS", "30"))
RETRY_BASE_DELAY_SECONDS: float = float(os.getenv("RETRY_BASE_DELAY_SECONDS", "2"))
RETRY_MAX_ATTEMPTS: int = int(os.getenv("RETRY_MAX_ATTEMPTS", "5"))


# =============================================================================
# Admin Authentication Configuration
# =============================================================================
# Admin endpoints require the x-admin-key header. If neither value is set the
# admin endpoints answer 503 instead of allowing unauthenticated access.

ADMIN_KEY: str = os.getenv("ADMIN_KEY", "")
ADMIN_KEY_SHA256: str = os.getenv("ADMIN_KEY_SHA256", "").lower()

# Actor recorded in the audit log when the request does not name one
DEFAULT_ADMIN_NAME: str = os.getenv("DEFAULT_ADMIN_NAME", "Admin BebCom")

AUDIT_LOG_MAX_ENTRIES: int = int(os.getenv("AUDIT_LOG_MAX_ENTRIES", "500"))


# =============================================================================
# Rate Limiting Configuration
# =============================================================================
# Format: "X per Y" where Y is second, minute, hour, or day

RATE_LIMIT_PAYMENT: str = os.getenv("RATE_LIMIT_PAYMENT", "30 per minute")
RATE_LIMIT_ENABLED: bool = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"


def get_rate_limit_payment() -> str:
    """
    Return the current payment rate limit.

    Allows dynamic override in tests without modifying the module-level
    constant captured by the decorator.
    """
    return RATE_LIMIT_PAYMENT


# =============================================================================
# Payment (PIX simulation)
# =============================================================================

PIX_KEY: str = os.getenv("PIX_KEY", "+5514999999999")
MERCHANT_NAME: str = os.getenv("MERCHANT_NAME", "BebCom Delivery")
MERCHANT_CITY: str = os.getenv("MERCHANT_CITY", "SAO PAULO")
ORDER_ID_PREFIX: str = os.getenv("ORDER_ID_PREFIX", "BEB")
QR_CODE_BASE_URL: str = "https://api.qrserver.com/v1/create-qr-code/"


# =============================================================================
# CORS Configuration
# =============================================================================
# Format: comma-separated list of origins, e.g. "https://bebcom.com.br"

_cors_origins_env = os.getenv("CORS_ORIGINS", "")
CORS_ORIGINS: List[str] = [
    origin.strip()
    for origin in _cors_origins_env.split(",")
    if origin.strip()
] or ["*"]
