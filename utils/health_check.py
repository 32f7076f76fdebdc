"""
Health check utilities for the Juri legal assistant

This module checks the components the assistant depends on: the chat
backends, the PDF libraries, the application state store and the host's
memory and disk.
"""
import logging
import time
from typing import Dict, Any, List, Optional
from dataclasses import dataclass
from enum import Enum

import pdfplumber
import psutil
import PyPDF2
import reportlab

from services.app_store import AppStore
from services.chat_service import ChatService

logger = logging.getLogger(__name__)


def _now() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


class HealthStatus(Enum):
    """Health status enumeration"""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
    UNKNOWN = "unknown"


@dataclass
class ComponentHealth:
    """Health information for a system component"""
    name: str
    status: HealthStatus
    message: str
    details: Optional[Dict[str, Any]] = None
    response_time_ms: Optional[int] = None
    last_check: Optional[str] = None


@dataclass
class SystemHealth:
    """Overall system health information"""
    status: HealthStatus
    message: str
    components: List[ComponentHealth]
    timestamp: str
    uptime_seconds: Optional[int] = None


class HealthChecker:
    """
    Health checker for all system components
    """

    def __init__(
        self,
        chat_service: Optional[ChatService] = None,
        app_store: Optional[AppStore] = None
    ):
        """
        Initialize health checker with system components

        Args:
            chat_service: Chat proxy instance
            app_store: Application state store
        """
        self.chat_service = chat_service
        self.app_store = app_store
        self.start_time = time.time()

    async def check_system_health(self, include_details: bool = True) -> SystemHealth:
        """
        Check the health of all system components

        Args:
            include_details: Whether to include detailed component information

        Returns:
            SystemHealth object with overall status and component details
        """
        components = []

        if self.chat_service:
            components.append(self._check_chat_backends())

        if self.app_store:
            components.append(self._check_app_store())

        components.append(self._check_pdf_engine())

        # Add basic system checks
        components.append(self._check_memory_usage())
        components.append(self._check_disk_space())

        overall_status = self._determine_overall_status(components)

        return SystemHealth(
            status=overall_status,
            message=self._get_status_message(overall_status, components),
            components=components if include_details else [],
            timestamp=_now(),
            uptime_seconds=int(time.time() - self.start_time)
        )

    def _check_chat_backends(self) -> ComponentHealth:
        """Check which chat backends are configured"""
        start_time = time.time()

        try:
            info = self.chat_service.get_backend_info()
            primary = bool(self.chat_service.primary_url)
            hosted = self.chat_service.client is not None

            # The canned fallback always answers, so missing backends degrade rather than fail
            if primary and hosted:
                status = HealthStatus.HEALTHY
                message = "Primary chat backend and hosted fallback are configured"
            elif primary or hosted:
                status = HealthStatus.DEGRADED
                message = f"Only the {'primary' if primary else 'hosted'} chat backend is configured"
            else:
                status = HealthStatus.DEGRADED
                message = "No chat backend configured; answers use the canned fallback"

            return ComponentHealth(
                name="chat_backends",
                status=status,
                message=message,
                details=info,
                response_time_ms=int((time.time() - start_time) * 1000),
                last_check=_now()
            )

        except Exception as e:
            return ComponentHealth(
                name="chat_backends",
                status=HealthStatus.UNHEALTHY,
                message=f"Chat backend check failed: {str(e)}",
                response_time_ms=int((time.time() - start_time) * 1000),
                last_check=_now()
            )

    def _check_app_store(self) -> ComponentHealth:
        """Report the size of the application state"""
        state = self.app_store.state
        return ComponentHealth(
            name="app_store",
            status=HealthStatus.HEALTHY,
            message="Application state is available",
            details={
                "documents": len(state.documents),
                "qa_sessions": len(state.qa_sessions),
                "active_tab": state.active_tab.value,
                "is_loading": state.is_loading
            },
            last_check=_now()
        )

    def _check_pdf_engine(self) -> ComponentHealth:
        """Report the PDF libraries used for extraction, generation and filling"""
        return ComponentHealth(
            name="pdf_engine",
            status=HealthStatus.HEALTHY,
            message="PDF extraction and generation libraries are loaded",
            details={
                "pdfplumber": getattr(pdfplumber, "__version__", "unknown"),
                "PyPDF2": getattr(PyPDF2, "__version__", "unknown"),
                "reportlab": getattr(reportlab, "Version", "unknown")
            },
            last_check=_now()
        )

    def _check_memory_usage(self) -> ComponentHealth:
        """Check system memory usage"""
        try:
            memory = psutil.virtual_memory()
            memory_percent = memory.percent

            if memory_percent < 80:
                status = HealthStatus.HEALTHY
                message = f"Memory usage is normal ({memory_percent:.1f}%)"
            elif memory_percent < 90:
                status = HealthStatus.DEGRADED
                message = f"Memory usage is high ({memory_percent:.1f}%)"
            else:
                status = HealthStatus.UNHEALTHY
                message = f"Memory usage is critical ({memory_percent:.1f}%)"

            return ComponentHealth(
                name="memory",
                status=status,
                message=message,
                details={
                    "total_gb": round(memory.total / (1024**3), 2),
                    "available_gb": round(memory.available / (1024**3), 2),
                    "used_percent": memory_percent
                },
                last_check=_now()
            )

        except Exception as e:
            return ComponentHealth(
                name="memory",
                status=HealthStatus.UNKNOWN,
                message=f"Memory check failed: {str(e)}",
                last_check=_now()
            )

    def _check_disk_space(self) -> ComponentHealth:
        """Check disk space usage"""
        try:
            disk = psutil.disk_usage('/')
            disk_percent = (disk.used / disk.total) * 100

            if disk_percent < 80:
                status = HealthStatus.HEALTHY
                message = f"Disk usage is normal ({disk_percent:.1f}%)"
            elif disk_percent < 90:
                status = HealthStatus.DEGRADED
                message = f"Disk usage is high ({disk_percent:.1f}%)"
            else:
                status = HealthStatus.UNHEALTHY
                message = f"Disk usage is critical ({disk_percent:.1f}%)"

            return ComponentHealth(
                name="disk",
                status=status,
                message=message,
                details={
                    "total_gb": round(disk.total / (1024**3), 2),
                    "free_gb": round(disk.free / (1024**3), 2),
                    "used_percent": disk_percent
                },
                last_check=_now()
            )

        except Exception as e:
            return ComponentHealth(
                name="disk",
                status=HealthStatus.UNKNOWN,
                message=f"Disk check failed: {str(e)}",
                last_check=_now()
            )

    def _determine_overall_status(self, components: List[ComponentHealth]) -> HealthStatus:
        """Determine overall system status based on component health"""
        if not components:
            return HealthStatus.UNKNOWN

        statuses = [c.status for c in components]

        if HealthStatus.UNHEALTHY in statuses:
            return HealthStatus.UNHEALTHY
        elif HealthStatus.DEGRADED in statuses:
            return HealthStatus.DEGRADED
        elif HealthStatus.HEALTHY in statuses:
            return HealthStatus.HEALTHY
        else:
            return HealthStatus.UNKNOWN

    def _get_status_message(self, status: HealthStatus, components: List[ComponentHealth]) -> str:
        """Get a descriptive message for the overall status"""
        if status == HealthStatus.HEALTHY:
            return f"All {len(components)} system components are healthy"
        elif status == HealthStatus.DEGRADED:
            degraded_components = [c.name for c in components if c.status == HealthStatus.DEGRADED]
            return f"System is degraded - issues with: {', '.join(degraded_components)}"
        elif status == HealthStatus.UNHEALTHY:
            unhealthy_components = [c.name for c in components if c.status == HealthStatus.UNHEALTHY]
            return f"System is unhealthy - critical issues with: {', '.join(unhealthy_components)}"
        else:
            return "System status is unknown"


async def quick_health_check(
    chat_service: Optional[ChatService] = None,
    app_store: Optional[AppStore] = None
) -> Dict[str, Any]:
    """
    Perform a quick health check of critical components

    Args:
        chat_service: Chat proxy instance
        app_store: Application state store

    Returns:
        Dictionary with basic health information
    """
    health_info = {
        "status": "unknown",
        "timestamp": _now(),
        "services": {}
    }

    if chat_service:
        health_info["services"]["chat"] = {
            "available": chat_service.is_available(),
            "backends": chat_service.get_backend_info()
        }

    if app_store:
        health_info["services"]["app_store"] = {
            "available": True,
            "documents": len(app_store.state.documents),
            "qa_sessions": len(app_store.state.qa_sessions)
        }

    all_available = all(
        service.get("available", False)
        for service in health_info["services"].values()
    )
    health_info["status"] = "healthy" if all_available else "degraded"

    return health_info


def is_service_ready(
    chat_service: Optional[ChatService] = None,
    app_store: Optional[AppStore] = None,
    require_backend: bool = False
) -> bool:
    """
    Check if the service is ready to handle requests

    Args:
        chat_service: Chat proxy instance
        app_store: Application state store
        require_backend: Whether a real chat backend must be configured

    Returns:
        True if service is ready, False otherwise
    """
    if chat_service is None or app_store is None:
        return False

    if require_backend and not chat_service.is_available():
        return False

    return True
