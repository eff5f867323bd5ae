"""Health checks: liveness, readiness and a detailed dependency report."""

import logging
import os
import platform
import sys
import time
from datetime import datetime, timezone
from typing import Callable, Optional, Tuple

logger = logging.getLogger("sga.health")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _elapsed_ms(started: float) -> str:
    return f"{round((time.perf_counter() - started) * 1000)}ms"


def memory_usage() -> dict:
    """Peak resident set size of this process, in MB where the platform reports it."""
    if sys.platform == "win32":
        return {"maxRss": None}
    import resource
    peak = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # ru_maxrss is bytes on macOS, kilobytes elsewhere
    divisor = 1024 * 1024 if sys.platform == "darwin" else 1024
    return {"maxRss": f"{round(peak / divisor)}MB"}


class HealthController:
    """Builds health payloads; each method returns `(status_code, body)`.

    `db_probe` is any zero-argument callable that raises when the
    database is unreachable (normally `database.ping_database`).
    """

    def __init__(self, db_probe: Callable[[], None], environment: str, version: str, started_at: Optional[float] = None):
        self.db_probe = db_probe
        self.environment = environment
        self.version = version
        self.started = started_at if started_at is not None else time.monotonic()

    def uptime(self) -> float:
        return round(time.monotonic() - self.started, 3)

    def basic(self) -> Tuple[int, dict]:
        return 200, {
            "status": "OK",
            "timestamp": _now(),
            "environment": self.environment,
            "version": self.version,
            "uptime": self.uptime(),
        }

    def liveness(self) -> Tuple[int, dict]:
        logger.debug("liveness check passed")
        return 200, {"status": "ALIVE", "timestamp": _now(), "uptime": self.uptime()}

    def readiness(self) -> Tuple[int, dict]:
        try:
            self.db_probe()
        except Exception as exc:
            logger.warning("readiness check failed: %s", exc)
            return 503, {"status": "NOT_READY", "timestamp": _now(), "error": str(exc)}
        return 200, {"status": "READY", "timestamp": _now()}

    def detailed(self) -> Tuple[int, dict]:
        """Report database, memory and process checks.

        A failing database probe degrades the overall status to
        `DEGRADED` (HTTP 503) without aborting the other checks.
        """
        started = time.perf_counter()
        health = {
            "status": "OK",
            "timestamp": _now(),
            "environment": self.environment,
            "version": self.version,
            "uptime": self.uptime(),
            "checks": {},
        }
        db_started = time.perf_counter()
        try:
            self.db_probe()
            health["checks"]["database"] = {"status": "OK", "responseTime": _elapsed_ms(db_started)}
        except Exception as exc:
            logger.error("database health check failed: %s", exc)
            health["checks"]["database"] = {
                "status": "ERROR",
                "error": str(exc),
                "responseTime": _elapsed_ms(db_started),
            }
            health["status"] = "DEGRADED"
        health["checks"]["memory"] = {"status": "OK", **memory_usage()}
        health["checks"]["process"] = {
            "status": "OK",
            "pid": os.getpid(),
            "pythonVersion": platform.python_version(),
            "platform": sys.platform,
        }
        health["responseTime"] = _elapsed_ms(started)
        logger.info("detailed health check status=%s", health["status"])
        return (200 if health["status"] == "OK" else 503), health
