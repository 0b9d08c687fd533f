from backend.app.models.user import User
from backend.app.models.feature import Feature, Vote

__all__ = [
    "User",
    "Feature",
    "Vote",
]
