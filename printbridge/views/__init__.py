"""View layer (routing) for the printbridge service."""


from .health import router as health_router
from .printer import router as printer_router
from .printing import router as printing_router
from .ws import ws_router


__all__ = [
    "health_router",
    "printer_router",
    "printing_router",
    "ws_router",
]
