import json

import pytest
from starlette.testclient import WebSocketDenialResponse
from starlette.websockets import WebSocketDisconnect


def space_set(code):
    return json.dumps({"SpaceSet": {"space_code": code}})


def count_update(mode, value):
    return json.dumps({"CountUpdate": {"mode": mode, "value": value}})


def test_join_and_set_absolute(ws_client, register):
    connection_id = register()

    with ws_client.websocket_connect(f"/ws/{connection_id}") as ws:
        ws.send_text(space_set("ABCD"))
        ws.send_text(count_update("absolute", 5))
        assert ws.receive_text() == "5"


def test_clamped_broadcast_reaches_both_members(ws_client, register):
    first = register("ABCD")
    second = register("ABCD")

    with ws_client.websocket_connect(f"/ws/{first}") as ws1:
        with ws_client.websocket_connect(f"/ws/{second}") as ws2:
            ws2.send_text(count_update("relative", -10))
            assert ws1.receive_text() == "0"
            assert ws2.receive_text() == "0"


def test_registered_space_used_without_join(ws_client, register):
    connection_id = register("QZXP")

    with ws_client.websocket_connect(f"/ws/{connection_id}") as ws:
        ws.send_text(count_update("relative", 3))
        ws.send_text(count_update("relative", 3))
        assert ws.receive_text() == "3"
        assert ws.receive_text() == "6"


def test_other_space_not_notified(ws_client, register):
    member = register("ABCD")
    outsider = register("EFGH")

    with ws_client.websocket_connect(f"/ws/{member}") as ws1:
        with ws_client.websocket_connect(f"/ws/{outsider}") as ws2:
            ws1.send_text(count_update("absolute", 4))
            assert ws1.receive_text() == "4"

            ws2.send_text(count_update("absolute", 9))
            # The first frame the outsider sees is its own space's value
            assert ws2.receive_text() == "9"

            ws1.send_text(count_update("relative", 1))
            assert ws1.receive_text() == "5"


def test_ping_and_garbage_are_ignored(ws_client, register, hub):
    connection_id = register("ABCD")

    with ws_client.websocket_connect(f"/ws/{connection_id}") as ws:
        ws.send_text("ping")
        ws.send_text("ping\n")
        ws.send_text("{not json")
        ws.send_bytes(b"\x00\x01")
        ws.send_text(count_update("relative", 1))
        assert ws.receive_text() == "1"


def test_unknown_id_upgrade_is_not_found(ws_client, hub):
    with pytest.raises(WebSocketDenialResponse) as exc_info:
        with ws_client.websocket_connect("/ws/unknown"):
            pass

    assert exc_info.value.status_code == 404
    assert len(hub.registry) == 0


def test_second_upgrade_is_refused(ws_client, register):
    connection_id = register("ABCD")

    with ws_client.websocket_connect(f"/ws/{connection_id}") as ws:
        with pytest.raises(WebSocketDenialResponse) as exc_info:
            with ws_client.websocket_connect(f"/ws/{connection_id}"):
                pass
        assert exc_info.value.status_code == 409

        ws.send_text(count_update("absolute", 2))
        assert ws.receive_text() == "2"


def test_disconnect_removes_connection(ws_client, register, hub, wait_until_removed):
    for _ in range(5):
        connection_id = register("ABCD")
        with ws_client.websocket_connect(f"/ws/{connection_id}") as ws:
            ws.send_text(count_update("relative", 1))
            ws.receive_text()

        assert wait_until_removed(connection_id)

    assert len(hub.registry) == 0
    delivered = ws_client.portal.call(hub.broadcaster.publish, "ABCD", 1)
    assert delivered == 0


def test_unregister_closes_upgraded_socket(ws_client, register, hub):
    connection_id = register("ABCD")

    with ws_client.websocket_connect(f"/ws/{connection_id}") as ws:
        resp = ws_client.delete(f"/register/{connection_id}")
        assert resp.status_code == 200

        with pytest.raises(WebSocketDisconnect):
            ws.receive_text()

    assert len(hub.registry) == 0


def test_close_while_forwarder_idle(ws_client, register, hub, wait_until_removed):
    # Nothing was ever broadcast, so the forwarder is still waiting on its
    # channel when the client goes away.
    for _ in range(5):
        connection_id = register("ABCD")
        with ws_client.websocket_connect(f"/ws/{connection_id}"):
            pass

        assert wait_until_removed(connection_id)

    # The app keeps serving after those teardowns
    connection_id = register("ABCD")
    with ws_client.websocket_connect(f"/ws/{connection_id}") as ws:
        ws.send_text(count_update("absolute", 3))
        assert ws.receive_text() == "3"
