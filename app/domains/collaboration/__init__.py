from app.domains.collaboration.rooms import (
    Connection, Member, PendingSave, Room, RoomManager
)

__all__ = [
    "Connection", "Member", "PendingSave", "Room", "RoomManager"
]
