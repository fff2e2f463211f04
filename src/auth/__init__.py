"""Registration, login and bearer-token authentication"""

from . import router, schemas, service, dependencies

__all__ = ["router", "schemas", "service", "dependencies"]
