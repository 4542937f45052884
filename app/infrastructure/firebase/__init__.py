"""Firestore integration over the REST API (roles, permissions, assignments, security events)."""

from app.infrastructure.firebase.client import (
    close_firebase,
    init_firebase,
)

__all__ = [
    "close_firebase",
    "init_firebase",
]
