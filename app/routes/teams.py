"""
Team endpoints - read access to response teams.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException

from app.stores import StoreError, get_stores

router = APIRouter(prefix="/teams", tags=["Teams"])


@router.get("")
async def get_teams(status: Optional[str] = None):
    """List teams, optionally filtered by status (available | assigned)."""
    try:
        teams = await get_stores().teams.list_teams(status=status)
    except StoreError as e:
        raise HTTPException(status_code=503, detail=f"Failed to retrieve teams: {e}")
    return [t.model_dump(mode="json", by_alias=True) for t in teams]


@router.get("/{team_id}")
async def get_team(team_id: str):
    team = await get_stores().teams.get_team(team_id)
    if team is None:
        raise HTTPException(status_code=404, detail="Team not found")
    return team.model_dump(mode="json", by_alias=True)
