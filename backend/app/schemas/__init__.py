from backend.app.schemas.feature import (
    FeatureCreate,
    FeatureResponse,
    FeatureStatusUpdate,
    FeatureVoteCreate,
    VoteResponse,
)
from backend.app.schemas.user import UserCreate, UserResponse

__all__ = [
    "UserCreate",
    "UserResponse",
    "FeatureCreate",
    "FeatureVoteCreate",
    "FeatureStatusUpdate",
    "FeatureResponse",
    "VoteResponse",
]
