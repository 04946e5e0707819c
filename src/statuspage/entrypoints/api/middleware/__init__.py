"""API middleware."""

from statuspage.entrypoints.api.middleware.auth import CallerDep, decode_subject, verify_jwt

__all__ = [
    "CallerDep",
    "decode_subject",
    "verify_jwt",
]
