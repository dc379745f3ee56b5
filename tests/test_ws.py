from fastapi.testclient import TestClient

from yovo_server import __version__
from yovo_server.main import create_app

from tests.fakes import FakeGateway, make_settings


def _client(gateway: FakeGateway) -> TestClient:
    return TestClient(create_app(settings=make_settings(), gateway=gateway))


def _connect(ws) -> str:
    hello = ws.receive_json()
    assert hello["type"] == "connected"
    return hello["payload"]["connectionId"]


def test_speech_round_trip() -> None:
    gateway = FakeGateway(replies=["Hello, I'm Yovo."])
    client = _client(gateway)

    with client.websocket_connect("/ws/voice") as ws:
        _connect(ws)
        ws.send_json({"type": "speech", "payload": {"text": "  hi there  "}})

        assert ws.receive_json() == {"type": "processingStart", "payload": {}}
        reply = ws.receive_json()

    assert reply["type"] == "llmResponse"
    assert reply["payload"]["text"] == "Hello, I'm Yovo."
    assert reply["payload"]["sessionState"]["currentTopic"] == "interest-discovery"
    assert isinstance(reply["payload"]["sessionState"]["sessionDuration"], int)
    assert gateway.calls[0]["history"][-1].content == "hi there"


def test_change_topic_round_trip() -> None:
    client = _client(FakeGateway())

    with client.websocket_connect("/ws/voice") as ws:
        _connect(ws)
        ws.send_json({"type": "change-topic", "payload": {"topic": "career-path"}})
        reply = ws.receive_json()

    assert reply["type"] == "llmResponse"
    assert reply["payload"]["sessionState"]["currentTopic"] == "career-path"


def test_bad_frames_keep_connection_open() -> None:
    client = _client(FakeGateway())

    with client.websocket_connect("/ws/voice") as ws:
        _connect(ws)

        ws.send_text("this is not json")
        assert ws.receive_json()["type"] == "error"

        ws.send_json({"type": "dance", "payload": {}})
        assert ws.receive_json()["type"] == "error"

        ws.send_json({"type": "speech", "payload": {"text": "   "}})
        assert ws.receive_json()["type"] == "error"

        ws.send_json({"type": "ping"})
        assert ws.receive_json() == {"type": "pong", "payload": {}}


def test_each_connection_gets_its_own_session_and_disconnect_cleans_up() -> None:
    app = create_app(settings=make_settings(), gateway=FakeGateway())
    registry = app.state.orchestrator.registry
    client = TestClient(app)

    with client.websocket_connect("/ws/voice") as first:
        first_id = _connect(first)
        with client.websocket_connect("/ws/voice") as second:
            second_id = _connect(second)
            assert first_id != second_id
            assert len(registry) == 2

    assert len(registry) == 0


def test_meta_endpoints() -> None:
    client = _client(FakeGateway())

    health = client.get("/health").json()
    assert health["status"] == "OK"
    assert health["provider"] == "deepseek"
    assert "timestamp" in health

    assert client.get("/api/version").json() == {"version": __version__}
    assert client.get("/").status_code == 200
