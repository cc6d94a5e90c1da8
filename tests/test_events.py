import uuid

from apps.backend.services.events.event_hub import EventHub, hub

from conftest import merchant_headers, seed_program


class FakeSocket:
    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    async def send_json(self, message):
        if self.fail:
            raise RuntimeError("connection closed")
        self.sent.append(message)


def test_emit_reaches_every_socket_of_the_user(run):
    events = EventHub()
    phone, tablet, other = FakeSocket(), FakeSocket(), FakeSocket()
    events.register("u1", phone)
    events.register("u1", tablet)
    events.register("u2", other)

    delivered = run(events.emit({"type": "PUNCH_ADDED", "userId": "u1"}))
    assert delivered == 2
    assert phone.sent == [{"event": "app_event", "data": {"type": "PUNCH_ADDED", "userId": "u1"}}]
    assert tablet.sent == phone.sent
    assert other.sent == []


def test_emit_to_offline_user_is_dropped(run):
    assert run(EventHub().emit({"type": "PUNCH_ADDED", "userId": "nobody"})) == 0


def test_failing_socket_is_unregistered(run):
    events = EventHub()
    good, bad = FakeSocket(), FakeSocket(fail=True)
    events.register("u1", good)
    events.register("u1", bad)

    assert run(events.emit({"type": "BUNDLE_USED", "userId": "u1"})) == 1
    assert run(events.emit({"type": "BUNDLE_USED", "userId": "u1"})) == 1
    assert len(good.sent) == 2


def test_unregister_forgets_empty_users():
    events = EventHub()
    socket = FakeSocket()
    events.register("u1", socket)
    events.unregister(socket)
    assert events.connected_users() == set()


def test_websocket_registration(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_text("not json")
        assert ws.receive_json() == {"event": "error", "data": {"message": "Invalid JSON"}}

        ws.send_json({"event": "register_user"})
        assert ws.receive_json()["event"] == "error"

        ws.send_json({"event": "register_user", "userId": "u-ws"})
        assert ws.receive_json() == {"event": "registration_confirmed", "data": {"userId": "u-ws"}}
        assert "u-ws" in hub.connected_users()

    assert "u-ws" not in hub.connected_users()


def test_punch_is_pushed_to_the_customer(client, fake_sb, merchant, merchant_staff):
    program = seed_program(fake_sb, merchant["id"], required_punches=2)
    user_id = str(uuid.uuid4())

    with client.websocket_connect("/ws") as ws:
        ws.send_json({"event": "register_user", "userId": user_id})
        ws.receive_json()

        res = client.post(
            "/punches",
            headers=merchant_headers(merchant_staff),
            json={"userId": user_id, "loyaltyProgramId": program["id"]},
        )
        assert res.status_code == 201

        message = ws.receive_json()
        assert message["event"] == "app_event"
        assert message["data"]["type"] == "PUNCH_ADDED"
        assert message["data"]["punchCard"]["currentPunches"] == 1
        assert message["data"]["newCard"] is None
