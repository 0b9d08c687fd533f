"""Feature board endpoints."""

from fastapi import APIRouter, Depends, Query

from backend.app.schemas.feature import (
    FeatureCreate,
    FeatureResponse,
    FeatureStatusUpdate,
    FeatureVoteCreate,
    VoteResponse,
)
from backend.app.services.identity import get_current_user_id, get_ledger, require_user_id
from backend.app.services.ledger import SORT_MOST_VOTED, VotingLedger

router = APIRouter(prefix="/features", tags=["features"])


@router.get("", response_model=list[FeatureResponse])
async def list_features(
    sort: str = Query(
        SORT_MOST_VOTED,
        description="most_voted (alias mostVoted) or most_recent (alias mostRecent)",
    ),
    category: str | None = None,
    viewer_id: str | None = Depends(get_current_user_id),
    ledger: VotingLedger = Depends(get_ledger),
) -> list[FeatureResponse]:
    standings = await ledger.get_feature_rankings(
        sort=sort, category=category, viewer_id=viewer_id
    )
    return [FeatureResponse.from_standing(s) for s in standings]


@router.post("", response_model=FeatureResponse, status_code=201)
async def create_feature(
    data: FeatureCreate,
    user_id: str = Depends(require_user_id),
    ledger: VotingLedger = Depends(get_ledger),
) -> FeatureResponse:
    standing = await ledger.suggest_feature(
        user_id, data.title, data.description, data.category, icon=data.icon
    )
    return FeatureResponse.from_standing(standing)


@router.get("/{feature_id}", response_model=FeatureResponse)
async def get_feature(
    feature_id: str,
    viewer_id: str | None = Depends(get_current_user_id),
    ledger: VotingLedger = Depends(get_ledger),
) -> FeatureResponse:
    return FeatureResponse.from_standing(await ledger.get_feature(feature_id, viewer_id))


@router.post("/{feature_id}/vote", response_model=VoteResponse)
async def vote_feature(
    feature_id: str,
    data: FeatureVoteCreate,
    user_id: str = Depends(require_user_id),
    ledger: VotingLedger = Depends(get_ledger),
) -> VoteResponse:
    outcome = await ledger.cast_vote(user_id, feature_id, data.direction)
    return VoteResponse.from_outcome(outcome)


@router.patch("/{feature_id}/status", response_model=FeatureResponse)
async def update_feature_status(
    feature_id: str,
    data: FeatureStatusUpdate,
    user_id: str = Depends(require_user_id),
    ledger: VotingLedger = Depends(get_ledger),
) -> FeatureResponse:
    standing = await ledger.set_status(user_id, feature_id, data.status)
    return FeatureResponse.from_standing(standing)


@router.delete("/{feature_id}", status_code=204)
async def delete_feature(
    feature_id: str,
    user_id: str = Depends(require_user_id),
    ledger: VotingLedger = Depends(get_ledger),
) -> None:
    await ledger.delete_feature(user_id, feature_id)
