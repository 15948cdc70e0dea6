from auth.events import AuthEvent, AuthEvents
from chat.registry import ChatRegistry
from chat.store import SessionStore


def test_observers_receive_events():
    events = AuthEvents()
    seen = []
    events.subscribe(lambda event, user_id: seen.append((event, user_id)))

    events.emit(AuthEvent.SIGNED_IN, "u1")
    events.emit(AuthEvent.SIGNED_OUT, "u1")

    assert seen == [(AuthEvent.SIGNED_IN, "u1"), (AuthEvent.SIGNED_OUT, "u1")]


def test_unsubscribe_stops_delivery():
    events = AuthEvents()
    seen = []
    subscription = events.subscribe(lambda event, user_id: seen.append(user_id))

    subscription.unsubscribe()
    subscription.unsubscribe()
    events.emit(AuthEvent.SIGNED_OUT, "u1")

    assert seen == []
    assert len(events) == 0


def test_failing_observer_does_not_block_others():
    events = AuthEvents()
    seen = []

    def broken(event, user_id):
        raise RuntimeError("boom")

    events.subscribe(broken)
    events.subscribe(lambda event, user_id: seen.append(user_id))

    events.emit(AuthEvent.SIGNED_IN, "u1")

    assert seen == ["u1"]


def test_close_drops_all_observers():
    events = AuthEvents()
    events.subscribe(lambda *args: None)
    events.subscribe(lambda *args: None)

    events.close()

    assert len(events) == 0


def test_registry_reuses_client_until_token_changes(supabase):
    built = []

    def make_client(token):
        built.append(token)
        return supabase

    registry = ChatRegistry()
    chat = registry.for_user("u1", "t1", make_client)

    assert registry.for_user("u1", "t1", make_client) is chat
    assert built == ["t1"]

    other_client = object()
    again = registry.for_user("u1", "t2", lambda token: other_client)

    assert again is chat
    assert chat.session_store.client is other_client
    assert registry.for_user("u2", "t3", make_client) is not chat
    assert len(registry) == 2


def test_registry_drops_state_on_sign_out(supabase):
    events = AuthEvents()
    registry = ChatRegistry()
    subscription = events.subscribe(registry.on_auth_event)
    registry.for_user("u1", "t1", lambda token: supabase)

    events.emit(AuthEvent.SIGNED_IN, "u1")
    assert "u1" in registry

    events.emit(AuthEvent.SIGNED_OUT, "u1")
    assert "u1" not in registry

    subscription.unsubscribe()
    registry.for_user("u1", "t1", lambda token: supabase)
    events.emit(AuthEvent.SIGNED_OUT, "u1")
    assert "u1" in registry


def test_registry_passes_responder(supabase):
    registry = ChatRegistry(responder=lambda text: "canned")
    chat = registry.for_user("u1", "t1", lambda token: supabase)
    chat.new_chat()

    assert chat.send("anything").reply == "canned"


def test_new_state_loads_sessions_from_store(supabase):
    store = SessionStore(supabase)
    older = store.create_session("u1")
    newer = store.create_session("u1")

    chat = ChatRegistry().for_user("u1", "t1", lambda token: supabase)

    assert [s.id for s in chat.sessions] == [newer.id, older.id]
    assert chat.current_session.id == newer.id


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_idle_state_is_evicted(supabase):
    clock = FakeClock()
    registry = ChatRegistry(idle_ttl=60, clock=clock)
    registry.for_user("idle", "t1", lambda token: supabase)
    clock.now = 30
    busy = registry.for_user("busy", "t2", lambda token: supabase)

    clock.now = 80
    assert registry.for_user("busy", "t2", lambda token: supabase) is busy
    assert "idle" not in registry
    assert "busy" in registry

    clock.now = 200
    fresh = registry.for_user("busy", "t2", lambda token: supabase)
    assert fresh is not busy
