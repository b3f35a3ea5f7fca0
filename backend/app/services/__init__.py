from .resurfacing import ResurfacingService

__all__ = ["ResurfacingService"]
