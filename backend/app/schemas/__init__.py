from .reflection import (
    MoodType,
    ReflectionCreate,
    ReflectionEligibilityUpdate,
    ReflectionResponse,
    known_mood,
)
from .resurfacing import (
    FROM_YOUR_PAST_LABEL,
    FromYourPastData,
    FromYourPastResponse,
    ResurfacedReflection,
)

__all__ = [
    "MoodType",
    "ReflectionCreate",
    "ReflectionEligibilityUpdate",
    "ReflectionResponse",
    "known_mood",
    "FROM_YOUR_PAST_LABEL",
    "FromYourPastData",
    "FromYourPastResponse",
    "ResurfacedReflection",
]
