"""Presence API — is a user connected right now?"""

from fastapi import APIRouter, Depends

from jobrelay.dependencies import get_presence
from jobrelay.realtime.presence import PresenceRegistry
from jobrelay.schemas.notification import PresenceRead

router = APIRouter()


@router.get("/presence/{user_identity}", response_model=PresenceRead)
async def get_presence_status(
    user_identity: str,
    presence: PresenceRegistry = Depends(get_presence),
):
    connection_id = await presence.resolve(user_identity)
    return PresenceRead(user_identity=user_identity, online=connection_id is not None)
