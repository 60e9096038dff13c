from . import (
    admin,
    attendance_service,
    catalog_service,
    member_service,
    pr_service,
    reservation_service,
)
__all__ = [
    "admin",
    "attendance_service",
    "catalog_service",
    "member_service",
    "pr_service",
    "reservation_service",
]
