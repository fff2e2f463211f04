"""Journey listing and management between cities"""

from .router import router
from .service import JourneyService

__all__ = ["router", "JourneyService"]
