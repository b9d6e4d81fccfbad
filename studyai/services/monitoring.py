"""
Health checks and monitoring with Prometheus metrics
"""
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi.responses import Response
import time
import psutil
import structlog

from studyai import config

logger = structlog.get_logger()

# Prometheus metrics
REQUEST_COUNT = Counter('http_requests_total', 'Total HTTP requests', ['method', 'endpoint', 'status'])
REQUEST_DURATION = Histogram('http_request_duration_seconds', 'HTTP request duration', ['method', 'endpoint'])
AI_GENERATION_REQUESTS = Counter('ai_generation_requests_total', 'Total AI generation requests', ['type', 'status'])
LLM_CALL_ATTEMPTS = Counter('llm_call_attempts_total', 'Individual LLM calls by outcome', ['outcome'])


class HealthChecker:
    def __init__(self):
        self.start_time = time.time()

    def check_llm(self) -> dict:
        """Check that the LLM service is configured (no network call)"""
        if config.GROQ_API_KEY:
            return {
                "status": "healthy",
                "message": "LLM service configured",
                "model": config.GROQ_MODEL,
                "base_url": config.GROQ_BASE_URL,
            }
        return {
            "status": "degraded",
            "message": "GROQ_API_KEY not set; generation endpoints are unavailable",
        }

    def get_system_metrics(self) -> dict:
        """Get system resource metrics"""
        try:
            cpu_percent = psutil.cpu_percent(interval=0.1)
            memory = psutil.virtual_memory()
            process = psutil.Process()

            return {
                "cpu_percent": cpu_percent,
                "memory_percent": memory.percent,
                "memory_available_gb": round(memory.available / (1024**3), 2),
                "process_rss_mb": round(process.memory_info().rss / (1024**2), 2),
                "uptime_seconds": time.time() - self.start_time
            }
        except Exception as e:
            logger.error(f"System metrics collection failed: {e}")
            return {"error": str(e)}

    def get_health_status(self) -> dict:
        """Get overall health status"""
        checks = {
            "llm": self.check_llm(),
        }

        # A missing key degrades generation but the service itself still answers
        unhealthy_checks = [name for name, check in checks.items() if check["status"] == "unhealthy"]
        degraded_checks = [name for name, check in checks.items() if check["status"] == "degraded"]
        if unhealthy_checks:
            overall_status = "unhealthy"
        elif degraded_checks:
            overall_status = "degraded"
        else:
            overall_status = "healthy"

        return {
            "status": overall_status,
            "timestamp": time.time(),
            "checks": checks,
            "system_metrics": self.get_system_metrics(),
            "unhealthy_components": unhealthy_checks + degraded_checks
        }


# Global health checker instance
health_checker = HealthChecker()


def get_metrics():
    """Get Prometheus metrics"""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
