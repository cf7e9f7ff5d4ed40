"""Service discovery for the ledger and notification backends.

Resolves the base URL of the services the engine talks to over HTTP:
- ledger: authoritative wallet/ledger service (CC_LEDGER_BACKEND=service)
- notification: receives domain events (substage/stage completed, phase changed)
"""

import logging
import os
from enum import Enum
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class DeploymentMode(Enum):
    """Where the services run."""

    DOCKER = "docker"  # Docker Compose container names
    KUBERNETES = "kubernetes"  # Cluster DNS
    LOCAL = "local"  # localhost port mapping


class ServiceRegistry:
    """Builds service URLs from the deployment mode.

    - Docker: http://cc-{service}-service:{port}
    - K8s: http://cc-{service}-service.{namespace}.svc.cluster.local:{port}
    - Local: http://localhost:{port}

    Environment Variables:
        DEPLOYMENT_MODE: "docker" (default), "kubernetes", or "local"
        K8S_NAMESPACE: Kubernetes namespace (default: "case-companion")
        SERVICE_{NAME}_URL: Full URL override for one service
        SERVICE_{NAME}_PORT: Port override for one service
    """

    DEFAULT_PORTS: Dict[str, int] = {
        "ledger": 8010,
        "notification": 8011,
    }

    def __init__(
        self,
        mode: Optional[str] = None,
        namespace: Optional[str] = None,
        custom_ports: Optional[Dict[str, int]] = None,
    ):
        mode_str = mode or os.getenv("DEPLOYMENT_MODE", "docker")
        try:
            self.mode = DeploymentMode(mode_str.lower())
        except ValueError:
            logger.warning(f"Invalid DEPLOYMENT_MODE '{mode_str}', defaulting to 'docker'")
            self.mode = DeploymentMode.DOCKER

        self.namespace = namespace or os.getenv("K8S_NAMESPACE", "case-companion")

        self.ports = dict(self.DEFAULT_PORTS)
        if custom_ports:
            self.ports.update(custom_ports)

        for service_name in self.ports:
            env_key = f"SERVICE_{self._env_name(service_name)}_PORT"
            env_port = os.getenv(env_key)
            if env_port:
                try:
                    self.ports[service_name] = int(env_port)
                except ValueError:
                    logger.warning(f"Invalid port in {env_key}: {env_port}")

        logger.info(f"ServiceRegistry initialized: mode={self.mode.value}, namespace={self.namespace}")

    @staticmethod
    def _env_name(service_name: str) -> str:
        return service_name.upper().replace("-", "_")

    def get_port(self, service_name: str) -> int:
        if service_name not in self.ports:
            raise ValueError(f"Unknown service: {service_name}. Known services: {sorted(self.ports)}")
        return self.ports[service_name]

    def get_url(self, service_name: str, protocol: str = "http") -> str:
        """Full base URL for a service.

        Raises:
            ValueError: If service name is unknown and has no URL override

        Example:
            >>> ServiceRegistry(mode="local").get_url("ledger")
            'http://localhost:8010'
        """
        override = os.getenv(f"SERVICE_{self._env_name(service_name)}_URL")
        if override:
            return override.rstrip("/")

        port = self.get_port(service_name)
        host = f"cc-{service_name}-service"
        if self.mode == DeploymentMode.KUBERNETES:
            host = f"{host}.{self.namespace}.svc.cluster.local"
        elif self.mode == DeploymentMode.LOCAL:
            host = "localhost"

        url = f"{protocol}://{host}:{port}"
        logger.debug(f"Resolved {service_name} -> {url}")
        return url

    def list_services(self) -> Dict[str, str]:
        return {name: self.get_url(name) for name in self.ports}


_registry_instance: Optional[ServiceRegistry] = None


def get_service_registry() -> ServiceRegistry:
    """Get or create the process-wide ServiceRegistry."""
    global _registry_instance

    if _registry_instance is None:
        _registry_instance = ServiceRegistry()

    return _registry_instance


def reset_service_registry():
    """Drop the process-wide ServiceRegistry (tests, reconfiguration)."""
    global _registry_instance
    _registry_instance = None
    logger.warning("ServiceRegistry instance reset")
