"""Service layer: transfer channels and sync twin generation."""

from assetdir.services._sync_wrapper import create_sync_class, sync_twin

__all__ = ["create_sync_class", "sync_twin"]
