"""HTTP middleware"""
from gqlauth.middleware.header_rewrite import HeaderRewriteMiddleware
from gqlauth.middleware.monitoring import (
    MonitoringMiddleware,
    record_auth_failure,
    record_token_issued,
    record_token_revoked,
)
from gqlauth.middleware.rate_limit import get_rate_limit, limiter

__all__ = [
    "HeaderRewriteMiddleware",
    "MonitoringMiddleware",
    "record_auth_failure",
    "record_token_issued",
    "record_token_revoked",
    "limiter",
    "get_rate_limit",
]
