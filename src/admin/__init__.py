"""
Admin System Module

Administrative endpoints for the bus booking system:

- Journey management (create, update, delete, driver assignment)
- Driver account management
- Booking oversight with seat overrides and forced deletion

Every route in this module requires the admin role.
"""

from . import router, schemas, admin_service

__all__ = [
    "router",
    "schemas",
    "admin_service"
]
