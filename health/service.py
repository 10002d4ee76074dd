"""
Health check service for the session service.

This module provides the HealthCheckService class that reports whether the
process is alive and whether the session store it depends on is reachable.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Any

from session.store import SessionHandler

logger = logging.getLogger(__name__)


def _utc_timestamp(value: Optional[datetime] = None) -> str:
    value = value or datetime.now(timezone.utc)
    return value.isoformat().replace("+00:00", "Z")


@dataclass
class DependencyHealth:
    """
    Health status of a single dependency.

    Attributes:
        name: The name of the dependency (e.g., "session_store")
        healthy: Whether the dependency is healthy and responding
        response_time_ms: The time taken to check the dependency in milliseconds
        error: Optional error message if the dependency check failed
    """
    name: str
    healthy: bool
    response_time_ms: float
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            "name": self.name,
            "healthy": self.healthy,
            "response_time_ms": round(self.response_time_ms, 2),
        }
        if self.error is not None:
            result["error"] = self.error
        return result


@dataclass
class HealthStatus:
    """
    Overall health status of the service.

    Attributes:
        status: Overall status - "healthy", "degraded", or "unhealthy"
        timestamp: When the health check was performed
        dependencies: List of individual dependency health statuses
    """
    status: str  # "healthy", "degraded", "unhealthy"
    timestamp: datetime
    dependencies: list[DependencyHealth] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "status": self.status,
            "timestamp": _utc_timestamp(self.timestamp),
            "dependencies": [dep.to_dict() for dep in self.dependencies],
        }


class HealthCheckService:
    """
    Service for checking the health of the session store.

    The session handler's ``health_check`` is synchronous, so it runs in
    the default executor under ``check_timeout``.

    Attributes:
        session_store: The session handler to check, if any
        check_timeout: Timeout in seconds for dependency checks (default: 5.0)
    """

    CRITICAL_DEPENDENCIES = ("session_store",)

    def __init__(
        self,
        session_store: Optional[SessionHandler] = None,
        check_timeout: float = 5.0
    ):
        self.session_store = session_store
        self.check_timeout = check_timeout

    async def check_readiness(self) -> HealthStatus:
        """
        Check all dependencies for readiness.

        Returns:
            HealthStatus: The aggregate health status with individual dependency statuses
        """
        dependencies: list[DependencyHealth] = []

        if self.session_store is not None:
            dependencies.append(await self._check_session_store())

        return HealthStatus(
            status=self._determine_overall_status(dependencies),
            timestamp=datetime.now(timezone.utc),
            dependencies=dependencies
        )

    async def check_liveness(self) -> dict[str, Any]:
        """Liveness check - the process is running. Dependencies are not checked."""
        return {
            "status": "alive",
            "timestamp": _utc_timestamp()
        }

    async def check_health(self) -> dict[str, Any]:
        """Basic health check - service is accepting requests."""
        return {
            "status": "ok",
            "timestamp": _utc_timestamp()
        }

    async def _check_session_store(self) -> DependencyHealth:
        """
        Check session store connectivity with timeout.

        Returns:
            DependencyHealth: The health status of the session store
        """
        start_time = time.perf_counter()

        try:
            result = await asyncio.wait_for(
                self._ping_session_store(),
                timeout=self.check_timeout
            )

            elapsed_ms = (time.perf_counter() - start_time) * 1000

            if result:
                logger.debug(f"Session store health check passed in {elapsed_ms:.2f}ms")
                return DependencyHealth(
                    name="session_store",
                    healthy=True,
                    response_time_ms=elapsed_ms
                )

            logger.warning(f"Session store health check returned False after {elapsed_ms:.2f}ms")
            return DependencyHealth(
                name="session_store",
                healthy=False,
                response_time_ms=elapsed_ms,
                error="Session store health check returned False"
            )

        except asyncio.TimeoutError:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            error_msg = f"Session store health check timed out after {self.check_timeout} seconds"
            logger.warning(error_msg)
            return DependencyHealth(
                name="session_store",
                healthy=False,
                response_time_ms=elapsed_ms,
                error=error_msg
            )

        except Exception as e:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            error_msg = f"Session store health check failed: {str(e)}"
            logger.error(error_msg)
            return DependencyHealth(
                name="session_store",
                healthy=False,
                response_time_ms=elapsed_ms,
                error=error_msg
            )

    async def _ping_session_store(self) -> bool:
        if self.session_store is None:
            return False

        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.session_store.health_check)

    def _determine_overall_status(self, dependencies: list[DependencyHealth]) -> str:
        """
        Determine the overall health status based on dependency health.

        - "healthy": All dependencies are healthy
        - "degraded": Some non-critical dependencies are unhealthy
        - "unhealthy": A critical dependency (the session store) is unhealthy
        """
        if all(dep.healthy for dep in dependencies):
            return "healthy"

        if any(not dep.healthy and dep.name in self.CRITICAL_DEPENDENCIES for dep in dependencies):
            return "unhealthy"

        return "degraded"
