"""Season-scoped realtime notifications over Socket.IO.

Clients join one room per season they are viewing. After a mutation commits,
the owning service publishes a named event to that room. Events are refetch
signals, not deltas: delivery is at-most-once and a failed emit is logged and
dropped.

Each season also keeps a short in-memory log of recent events with a
monotonically increasing sequence number, so a client that reconnects can ask
for everything after the last ``seq`` it saw. When that point has already
been evicted (or the process restarted) the client is told to refetch.
"""

from __future__ import annotations

import logging
from collections import defaultdict, deque
from typing import Any

import socketio

from xblade.models.realtime import EventCatchUp, SeasonEvent, SeasonEventName

logger = logging.getLogger(__name__)

JOIN_EVENT = "season:join"
LEAVE_EVENT = "season:leave"
SYNC_EVENT = "season:sync"


def room_for(season_id: int) -> str:
    """Room key for a season."""
    return f"season:{season_id}"


def _coerce_season_id(raw: Any) -> int | None:
    """Accept ``5``, ``"5"`` or ``{"seasonId": 5}`` from client payloads."""
    if isinstance(raw, dict):
        raw = raw.get("seasonId", raw.get("season_id"))
    if isinstance(raw, bool):
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


class SeasonNotifier:
    """Fan-out of season events plus the per-season catch-up log."""

    def __init__(self, server: socketio.AsyncServer | None = None, history_size: int = 200) -> None:
        self.server = server
        self.history_size = history_size
        self._seq: dict[int, int] = defaultdict(int)
        self._history: dict[int, deque[SeasonEvent]] = {}
        # Reverse mapping for cleanup on disconnect: {sid: {season_id, ...}}
        self._sid_rooms: dict[str, set[int]] = defaultdict(set)
        self.emitted = 0
        self.dropped = 0

    # Room membership ----------------------------------------------------

    async def join(self, sid: str, season_id: int) -> None:
        if self.server is not None:
            await self.server.enter_room(sid, room_for(season_id))
        self._sid_rooms[sid].add(season_id)
        logger.debug("sid %s joined %s", sid, room_for(season_id))

    async def leave(self, sid: str, season_id: int) -> None:
        if self.server is not None:
            await self.server.leave_room(sid, room_for(season_id))
        rooms = self._sid_rooms.get(sid)
        if rooms is not None:
            rooms.discard(season_id)
            if not rooms:
                del self._sid_rooms[sid]
        logger.debug("sid %s left %s", sid, room_for(season_id))

    def forget(self, sid: str) -> None:
        """Drop local bookkeeping for a disconnected socket."""
        self._sid_rooms.pop(sid, None)

    def subscriber_count(self, season_id: int) -> int:
        return sum(1 for rooms in self._sid_rooms.values() if season_id in rooms)

    # Publishing ---------------------------------------------------------

    def _record(self, name: SeasonEventName, season_id: int, data: dict[str, Any]) -> SeasonEvent:
        self._seq[season_id] += 1
        event = SeasonEvent(name=name, season_id=season_id, seq=self._seq[season_id], data=data)
        history = self._history.get(season_id)
        if history is None:
            history = self._history[season_id] = deque(maxlen=self.history_size)
        history.append(event)
        return event

    async def publish(self, name: SeasonEventName, season_id: int, **data: Any) -> SeasonEvent:
        """Record and broadcast an event to everyone in the season's room."""
        event = self._record(name, season_id, data)
        if self.server is None:
            return event
        try:
            await self.server.emit(name.wire_name, event.payload(), room=room_for(season_id))
            self.emitted += 1
        except Exception:
            self.dropped += 1
            logger.warning(
                "Dropped %s for season %s (seq %s)",
                name.wire_name, season_id, event.seq, exc_info=True,
            )
        return event

    async def publish_many(
        self, name: SeasonEventName, season_ids: set[int] | list[int], **data: Any
    ) -> list[SeasonEvent]:
        return [await self.publish(name, season_id, **data) for season_id in sorted(set(season_ids))]

    # Catch-up -----------------------------------------------------------

    def latest_seq(self, season_id: int) -> int:
        return self._seq.get(season_id, 0)

    def events_since(self, season_id: int, since: int) -> EventCatchUp:
        """Return events after ``since`` or ask the client to refetch."""
        latest = self.latest_seq(season_id)
        history = self._history.get(season_id) or deque()
        oldest = history[0].seq if history else latest + 1

        # since > latest means the client saw a previous process's counter
        resync = since > latest or (since < latest and since + 1 < oldest)
        events = [] if resync else [
            {"event": e.name.wire_name, **e.payload()} for e in history if e.seq > since
        ]
        return EventCatchUp(
            season_id=season_id,
            since=since,
            latest_seq=latest,
            resync_required=resync,
            events=events,
        )

    # Socket.IO wiring ---------------------------------------------------

    def attach(self, server: socketio.AsyncServer) -> None:
        """Register the season control-message handlers on ``server``."""
        self.server = server

        @server.on(JOIN_EVENT)
        async def _on_join(sid, data):  # type: ignore[no-untyped-def]
            season_id = _coerce_season_id(data)
            if season_id is None:
                return {"ok": False, "error": "seasonId required"}
            await self.join(sid, season_id)
            return {"ok": True, "room": room_for(season_id), "seq": self.latest_seq(season_id)}

        @server.on(LEAVE_EVENT)
        async def _on_leave(sid, data):  # type: ignore[no-untyped-def]
            season_id = _coerce_season_id(data)
            if season_id is None:
                return {"ok": False, "error": "seasonId required"}
            await self.leave(sid, season_id)
            return {"ok": True}

        @server.on(SYNC_EVENT)
        async def _on_sync(sid, data):  # type: ignore[no-untyped-def]
            season_id = _coerce_season_id(data)
            if season_id is None:
                return {"ok": False, "error": "seasonId required"}
            since = data.get("since", 0) if isinstance(data, dict) else 0
            try:
                since = int(since)
            except (TypeError, ValueError):
                since = 0
            return self.events_since(season_id, since).model_dump(mode="json")

        @server.on("disconnect")
        async def _on_disconnect(sid, *args):  # type: ignore[no-untyped-def]
            self.forget(sid)


def create_socket_server(cors_origins: list[str]) -> socketio.AsyncServer:
    """Build the ASGI Socket.IO server used by the app."""
    return socketio.AsyncServer(
        async_mode="asgi",
        cors_allowed_origins=cors_origins,
        logger=False,
        engineio_logger=False,
    )
