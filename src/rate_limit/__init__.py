"""
Rate Limiting Module

Token-bucket admission control for the API:

- A global per-IP budget applied to every request before authentication
- A per-IP budget for public endpoints
- Per-user budgets keyed by role for authenticated endpoints (admins are exempt)

Key Components:
- bucket.py: Thread-safe token bucket with continuous refill
- admission.py: Keyed admission controller holding one bucket per key
- policy.py: Budgets from settings, key extractors, middleware and dependencies
"""

from .bucket import RateBucket
from .admission import AdmissionController, Budget
from .policy import (
    RateLimitPolicy, client_ip, current_user_id,
    enforce_public_budget, enforce_role_budget, global_rate_limit_middleware
)

__all__ = [
    "RateBucket",
    "AdmissionController",
    "Budget",
    "RateLimitPolicy",
    "client_ip",
    "current_user_id",
    "enforce_public_budget",
    "enforce_role_budget",
    "global_rate_limit_middleware"
]
