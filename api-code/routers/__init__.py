from .health import build_health_router
from .webhook import DeliveryLog, build_webhook_router

__all__ = ["DeliveryLog", "build_health_router", "build_webhook_router"]
