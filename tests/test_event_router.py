import asyncio

from musicsync.models import Song
from musicsync.schemas.commands import parse_command
from musicsync.services.event_router import EventRouter
from musicsync.services.room_registry import RoomRegistry
from musicsync.services.session_table import SessionTable

from conftest import RecordingTransport, SequenceCodes

SONG = {"id": "s1", "title": "So What", "artist": "Miles Davis", "durationLabel": "9:22", "payloadRef": "blob:1"}


def assert_members_match_sessions(router):
    for code in router.registry.codes():
        room = router.registry.get(code)
        assert [m.id for m in room.members] == [s.connection_id for s in router.sessions.in_room(code)]


# ==================== CREATE / JOIN ====================

async def test_create_room_replies_to_requester_only(send, transport, registry):
    await send("ann", "create-room", displayName="Ann")

    assert transport.sent == {"ann": [{"type": "room-created", "data": {"code": "AB12CD"}}]}
    assert registry.get("AB12CD").members == []


async def test_scenario_create_then_join(send, transport):
    await send("ann", "create-room", displayName="Ann")
    await send("ann", "join-room", code="AB12CD", displayName="Ann")

    [joined] = transport.events("ann", "room-joined")
    room = joined["data"]["room"]
    assert room["code"] == "AB12CD"
    assert [m["displayName"] for m in room["members"]] == ["Ann"]
    assert [(m["authorName"], m["text"]) for m in room["messages"]] == [("System", "Ann joined the room")]


async def test_second_join_notifies_first_member(send, transport, room_code):
    await send("ann", "join-room", code=room_code, displayName="Ann")
    transport.clear()

    await send("bo", "join-room", code=room_code, displayName="Bo")

    assert transport.types("ann") == ["user-joined", "users-updated", "new-message"]
    [user_joined] = transport.events("ann", "user-joined")
    assert user_joined["data"]["user"]["displayName"] == "Bo"
    [updated] = transport.events("ann", "users-updated")
    assert [u["displayName"] for u in updated["data"]["users"]] == ["Ann", "Bo"]
    assert transport.events("ann", "new-message")[0]["data"]["message"]["text"] == "Bo joined the room"

    # The joiner gets its snapshot and the member list, never its own join notice
    assert transport.types("bo") == ["room-joined", "users-updated"]


async def test_join_unknown_room_errors_to_requester_only(send, transport, router, room_code):
    await send("ann", "join-room", code=room_code, displayName="Ann")
    transport.clear()

    await send("bo", "join-room", code="ZZZZZZ", displayName="Bo")

    assert transport.sent == {"bo": [{"type": "room-error", "data": {"message": "Room not found"}}]}
    assert "bo" not in router.sessions


async def test_failed_join_leaves_bound_connection_in_place(send, transport, router, room_code):
    await send("ann", "join-room", code=room_code, displayName="Ann")
    await send("bo", "join-room", code=room_code, displayName="Bo")
    transport.clear()

    await send("bo", "join-room", code="ZZZZZZ", displayName="Bo")

    assert transport.sent == {"bo": [{"type": "room-error", "data": {"message": "Room not found"}}]}
    assert router.sessions.get("bo").room_code == room_code
    room = router.registry.get(room_code)
    assert [m.id for m in room.members] == ["ann", "bo"]
    assert [m.text for m in room.messages] == ["Ann joined the room", "Bo joined the room"]
    assert_members_match_sessions(router)


async def test_joining_current_room_again_resends_snapshot(send, transport, router, room_code):
    await send("ann", "join-room", code=room_code, displayName="Ann")
    transport.clear()

    await send("ann", "join-room", code=room_code, displayName="Ann")

    assert transport.types("ann") == ["room-joined"]
    assert room_code in router.registry
    assert [m.id for m in router.registry.get(room_code).members] == ["ann"]


async def test_join_code_is_case_insensitive(send, transport, room_code):
    await send("ann", "join-room", code=room_code.lower(), displayName="Ann")
    assert transport.events("ann", "room-joined")


async def test_create_room_reports_exhausted_codes(transport):
    registry = RoomRegistry(code_generator=SequenceCodes("SAME01"), max_attempts=2)
    registry.create()
    router = EventRouter(registry, SessionTable(), transport)

    await router.dispatch("ann", parse_command({"type": "create-room", "data": {}}))

    [error] = transport.events("ann")
    assert error["type"] == "room-error"
    assert len(registry) == 1


# ==================== ROOM EVENTS ====================

async def test_send_message_reaches_everyone(send, transport, room_code):
    await send("ann", "join-room", code=room_code, displayName="Ann")
    await send("bo", "join-room", code=room_code, displayName="Bo")
    transport.clear()

    await send("ann", "send-message", text="hi")

    for connection_id in ("ann", "bo"):
        [message] = transport.events(connection_id, "new-message")
        assert message["data"]["message"]["text"] == "hi"
        assert message["data"]["message"]["authorName"] == "Ann"


async def test_select_song_broadcasts_change_and_announcement(send, transport, room_code):
    await send("ann", "join-room", code=room_code, displayName="Ann")
    await send("bo", "join-room", code=room_code, displayName="Bo")
    await send("ann", "music-control", isPlaying=True, currentTime=30)
    transport.clear()

    await send("ann", "select-song", song=SONG)

    for connection_id in ("ann", "bo"):
        assert transport.types(connection_id) == ["song-changed", "new-message"]
        [changed] = transport.events(connection_id, "song-changed")
        assert changed["data"]["song"]["title"] == "So What"
        assert changed["data"]["isPlaying"] is False
        assert changed["data"]["currentTime"] == 0
        [note] = transport.events(connection_id, "new-message")
        assert "So What" in note["data"]["message"]["text"]
        assert "Ann" in note["data"]["message"]["text"]


async def test_repeated_select_song_resets_each_time(send, router, room_code):
    await send("ann", "join-room", code=room_code, displayName="Ann")
    room = router.registry.get(room_code)

    for position in (5.0, 120.0, 0.5):
        await send("ann", "music-control", isPlaying=True, currentTime=position)
        await send("ann", "select-song", song=SONG)
        assert room.current_song == Song.model_validate(SONG)
        assert room.is_playing is False
        assert room.current_time == 0


async def test_select_song_with_duplicate_id_uses_sent_song(send, transport, router, room_code):
    await send("ann", "join-room", code=room_code, displayName="Ann")
    await send("ann", "add-song", id="dup", title="First", artist="A")
    await send("ann", "add-song", id="dup", title="Second", artist="B")
    second = router.registry.get(room_code).playlist[1].to_wire()
    transport.clear()

    await send("ann", "select-song", song=second)

    assert router.registry.get(room_code).current_song.title == "Second"
    [changed] = transport.events("ann", "song-changed")
    assert changed["data"]["song"] == second
    [note] = transport.events("ann", "new-message")
    assert note["data"]["message"]["text"] == 'Ann selected "Second" by B'


async def test_music_control_skips_sender(send, transport, room_code):
    for name in ("ann", "bo", "cy"):
        await send(name, "join-room", code=room_code, displayName=name.title())
    transport.clear()

    await send("bo", "music-control", isPlaying=True, currentTime=12.5)

    assert transport.events("bo", "music-sync") == []
    for connection_id in ("ann", "cy"):
        [sync] = transport.events(connection_id, "music-sync")
        assert sync["data"]["isPlaying"] is True
        assert sync["data"]["currentTime"] == 12.5
        assert isinstance(sync["data"]["relayTimestamp"], int)


async def test_typing_relays_to_others(send, transport, router, room_code):
    await send("ann", "join-room", code=room_code, displayName="Ann")
    await send("bo", "join-room", code=room_code, displayName="Bo")
    transport.clear()

    await send("ann", "typing", isTyping=True)

    assert transport.events("ann") == []
    [typing] = transport.events("bo", "user-typing")
    assert typing["data"] == {"connectionId": "ann", "displayName": "Ann", "isTyping": True}
    assert router.sessions.get("ann").is_typing is True


async def test_add_song_broadcasts_playlist(send, transport, room_code):
    await send("ann", "join-room", code=room_code, displayName="Ann")
    await send("bo", "join-room", code=room_code, displayName="Bo")
    transport.clear()

    await send("bo", "add-song", title="Freddie Freeloader", artist="Miles Davis", durationLabel="9:46", audioRef="blob:9")

    for connection_id in ("ann", "bo"):
        [updated] = transport.events(connection_id, "playlist-updated")
        [song] = updated["data"]["playlist"]
        assert song["title"] == "Freddie Freeloader"
        assert song["addedByName"] == "Bo"
        assert song["payloadRef"] == "blob:9"


async def test_orphan_events_are_dropped(send, transport, router, room_code):
    await send("ghost", "send-message", text="anyone?")
    await send("ghost", "music-control", isPlaying=True, currentTime=1)

    assert transport.sent == {}
    assert router.registry.get(room_code).messages == []


# ==================== DISCONNECT ====================

async def test_disconnect_announces_and_cleans_up(send, transport, router, room_code):
    await send("ann", "join-room", code=room_code, displayName="Ann")
    await send("bo", "join-room", code=room_code, displayName="Bo")
    transport.clear()

    await router.disconnect("bo")

    assert transport.types("ann") == ["user-left", "users-updated", "new-message"]
    assert transport.events("ann", "user-left")[0]["data"] == {"connectionId": "bo"}
    [updated] = transport.events("ann", "users-updated")
    assert [u["displayName"] for u in updated["data"]["users"]] == ["Ann"]
    assert transport.events("ann", "new-message")[0]["data"]["message"]["text"] == "Bo left the room"
    assert transport.events("bo") == []
    assert "bo" not in router.sessions

    # Nothing more is dispatched for the departed connection
    transport.clear()
    await send("bo", "send-message", text="still here?")
    assert transport.sent == {}


async def test_last_member_leaving_deletes_room(send, router, room_code):
    await send("ann", "join-room", code=room_code, displayName="Ann")
    await router.disconnect("ann")

    assert room_code not in router.registry
    assert len(router.sessions) == 0


async def test_disconnect_without_session_is_noop(router, transport, room_code):
    await router.disconnect("never-joined")
    assert transport.sent == {}
    assert room_code in router.registry


async def test_rejoin_moves_session_between_rooms(send, transport, router, room_code):
    await send("ann", "join-room", code=room_code, displayName="Ann")
    await send("bo", "join-room", code=room_code, displayName="Bo")
    await send("bo", "create-room", displayName="Bo")
    other = transport.events("bo", "room-created")[0]["data"]["code"]
    transport.clear()

    await send("bo", "join-room", code=other, displayName="Bo")

    assert router.sessions.get("bo").room_code == other
    assert [m.id for m in router.registry.get(room_code).members] == ["ann"]
    assert [m.id for m in router.registry.get(other).members] == ["bo"]
    assert transport.events("ann", "user-left")
    assert_members_match_sessions(router)


# ==================== INVARIANTS ====================

async def test_members_track_sessions_through_churn(send, router, room_code):
    second = None
    steps = [
        ("join", "a", room_code), ("join", "b", room_code), ("join", "c", room_code),
        ("leave", "b", None), ("create", "d", None), ("join", "d", "second"),
        ("join", "b", "second"), ("leave", "a", None), ("join", "a", "second"),
        ("leave", "c", None),
    ]
    for action, connection_id, code in steps:
        if action == "join":
            target = second if code == "second" else code
            await send(connection_id, "join-room", code=target, displayName=connection_id)
        elif action == "create":
            await send(connection_id, "create-room", displayName=connection_id)
            second = router.transport.events(connection_id, "room-created")[-1]["data"]["code"]
        else:
            await router.disconnect(connection_id)
        assert_members_match_sessions(router)

    # First room emptied out and was removed
    assert room_code not in router.registry
    assert [m.id for m in router.registry.get(second).members] == ["d", "b", "a"]


async def test_concurrent_creates_yield_distinct_codes():
    transport = RecordingTransport()
    router = EventRouter(RoomRegistry(), SessionTable(), transport)

    command = parse_command({"type": "create-room", "data": {"displayName": "x"}})
    await asyncio.gather(*(router.dispatch(f"c{i}", command) for i in range(200)))

    codes = [transport.events(f"c{i}", "room-created")[0]["data"]["code"] for i in range(200)]
    assert len(set(codes)) == 200


async def test_concurrent_events_keep_room_consistent(send, router, room_code):
    await send("ann", "join-room", code=room_code, displayName="Ann")

    await asyncio.gather(
        *(send(f"p{i}", "join-room", code=room_code, displayName=f"P{i}") for i in range(20)),
        *(send("ann", "send-message", text=f"m{i}") for i in range(20)),
    )
    await asyncio.gather(*(router.disconnect(f"p{i}") for i in range(0, 20, 2)))

    room = router.registry.get(room_code)
    assert len(room.members) == 11
    assert_members_match_sessions(router)
    assert sum(1 for m in room.messages if m.author_name == "Ann") == 20
