from .profile import Profile
from .reflection import Reflection
from .resurfacing_event import ResurfacingEvent

__all__ = [
    "Profile",
    "Reflection",
    "ResurfacingEvent",
]
