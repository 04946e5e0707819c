"""RBAC adapters."""

from statuspage.adapters.rbac.teams_repository import TeamsRepository

__all__ = ["TeamsRepository"]
