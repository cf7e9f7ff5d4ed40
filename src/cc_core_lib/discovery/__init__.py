"""Service Discovery Module

Resolves ledger and notification service URLs per deployment mode.
"""

from .service_registry import (
    ServiceRegistry,
    DeploymentMode,
    get_service_registry,
    reset_service_registry,
)

__all__ = [
    "ServiceRegistry",
    "DeploymentMode",
    "get_service_registry",
    "reset_service_registry",
]
