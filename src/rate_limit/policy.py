"""
Which bucket set applies to which caller.

- every request: a global per-IP bucket, checked before authentication
- public routes: a per-IP bucket with the traveller budget
- authenticated routes: a per-user bucket chosen by role; admins are exempt
"""

import time
from typing import Dict, Optional

from fastapi import Depends, Request
from fastapi.responses import JSONResponse

from src.auth.dependencies import get_current_user
from src.auth.schemas import CurrentUser
from src.config import Settings
from src.exceptions import RateLimitedError
from src.logger_config import logger
from src.models import Role
from src.rate_limit.admission import AdmissionController, Budget
from src.rate_limit.bucket import MonotonicClock


def client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


def current_user_id(request: Request) -> Optional[str]:
    user = getattr(request.state, "current_user", None)
    return user.id if user else None


def role_budgets(settings: Settings) -> Dict[Role, Optional[Budget]]:
    """Per-role budget table; None means the role has no per-user ceiling"""
    return {
        Role.TRAVELLER: Budget.per_interval(settings.TRAVELLER_RATE_BURST, settings.TRAVELLER_RATE_INTERVAL_MS),
        Role.DRIVER: Budget.per_interval(settings.DRIVER_RATE_BURST, settings.DRIVER_RATE_INTERVAL_MS),
        Role.ADMIN: None,
    }


class RateLimitPolicy:
    def __init__(
        self,
        global_ip: AdmissionController,
        public_ip: AdmissionController,
        by_role: Dict[Role, Optional[AdmissionController]],
    ):
        self.global_ip = global_ip
        self.public_ip = public_ip
        self.by_role = by_role

    @classmethod
    def from_settings(cls, settings: Settings, clock: MonotonicClock = time.monotonic) -> "RateLimitPolicy":
        global_ip = AdmissionController(
            Budget.per_interval(settings.GLOBAL_RATE_BURST, settings.GLOBAL_RATE_INTERVAL_MS),
            key_extractor=client_ip, clock=clock, name="global-ip",
        )
        public_ip = AdmissionController(
            Budget.per_interval(settings.PUBLIC_RATE_BURST, settings.PUBLIC_RATE_INTERVAL_MS),
            key_extractor=client_ip, clock=clock, name="public-ip",
        )
        by_role = {
            role: AdmissionController(budget, key_extractor=current_user_id, clock=clock, name=f"role-{role.value}")
            if budget is not None else None
            for role, budget in role_budgets(settings).items()
        }
        return cls(global_ip, public_ip, by_role)

    def for_role(self, role: Role) -> Optional[AdmissionController]:
        return self.by_role.get(role)


def _policy(request: Request) -> RateLimitPolicy:
    return request.app.state.rate_limits


def _reject(request: Request, limiter: str) -> None:
    logger.warning(f"Rate limited ({limiter}): {request.method} {request.url.path} from {client_ip(request)}")


async def global_rate_limit_middleware(request: Request, call_next):
    """Per-IP ceiling applied ahead of authentication and routing"""
    if not _policy(request).global_ip.admit(request):
        _reject(request, "global-ip")
        error = RateLimitedError()
        return JSONResponse(status_code=error.status_code, content={"detail": error.message})
    return await call_next(request)


def enforce_public_budget(request: Request) -> None:
    if not _policy(request).public_ip.admit(request):
        _reject(request, "public-ip")
        raise RateLimitedError()


def enforce_role_budget(request: Request, current_user: CurrentUser = Depends(get_current_user)) -> None:
    controller = _policy(request).for_role(current_user.role)
    if controller is None:
        return
    if not controller.admit(request):
        _reject(request, f"role-{current_user.role.value}")
        raise RateLimitedError()
