"""Feature board schemas."""

from pydantic import BaseModel

from backend.app.services.ledger import FeatureStanding, VoteOutcome


class FeatureCreate(BaseModel):
    title: str
    description: str
    category: str
    icon: str | None = None


class FeatureVoteCreate(BaseModel):
    direction: str  # "up" or "down"


class FeatureStatusUpdate(BaseModel):
    status: str


class FeatureResponse(BaseModel):
    id: str
    title: str
    description: str
    category: str
    icon: str
    status: str
    created_by: str
    created_at: str
    upvotes: int = 0
    downvotes: int = 0
    net_score: int = 0
    user_vote: str | None = None

    @classmethod
    def from_standing(cls, standing: FeatureStanding) -> "FeatureResponse":
        feature, tally = standing.feature, standing.tally
        return cls(
            id=feature.id,
            title=feature.title,
            description=feature.description,
            category=feature.category,
            icon=feature.icon,
            status=feature.status,
            created_by=feature.created_by,
            created_at=feature.created_at,
            upvotes=tally.up_count,
            downvotes=tally.down_count,
            net_score=tally.net_score,
            user_vote=tally.user_vote,
        )


class VoteResponse(BaseModel):
    feature_id: str
    direction: str  # "up", "down" or "none"
    upvotes: int
    downvotes: int
    net_score: int

    @classmethod
    def from_outcome(cls, outcome: VoteOutcome) -> "VoteResponse":
        return cls(
            feature_id=outcome.feature_id,
            direction=outcome.direction,
            upvotes=outcome.tally.up_count,
            downvotes=outcome.tally.down_count,
            net_score=outcome.tally.net_score,
        )
