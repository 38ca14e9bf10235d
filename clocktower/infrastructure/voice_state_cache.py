class VoiceStateCache:
    """Who is connected to which voice room, per group.

    Fed by the gateway connection's voice state events; read when a
    topology snapshot is built.
    """

    def __init__(self) -> None:
        self._by_group: dict[str, dict[str, str]] = {}

    def update(self, group_id: str, participant_id: str, room_id: str | None) -> None:
        rooms = self._by_group.setdefault(group_id, {})
        if room_id:
            rooms[participant_id] = room_id
        else:
            rooms.pop(participant_id, None)

    def occupancy(self, group_id: str) -> dict[str, str]:
        return dict(self._by_group.get(group_id, {}))
