from . import (
    auth,
    classes,
    reservations,
    users,
    prs,
    box,
    stats,
)

__all__ = [
    "auth",
    "classes",
    "reservations",
    "users",
    "prs",
    "box",
    "stats",
]
