from .premium import router as premium_router
from .reflections import router as reflections_router

__all__ = [
    "premium_router",
    "reflections_router",
]
