from __future__ import annotations

import asyncio
import json


def _seed(storage):
    async def scenario():
        alice = await storage.create_user(username="alice", full_name="Alice Doe", role="team_member")
        bob = await storage.create_user(username="bob", full_name="Bob Roe", role="admin")
        request = await storage.create_request(user_id=alice.id, title="Audit", description="Audit the books")
        step = await storage.create_step(request_id=request.id, title="Collect ledgers")
        return alice, bob, request, step

    return asyncio.run(scenario())


def _join(user, request) -> dict:
    return {"type": "join_workspace", "userId": user.id, "requestId": request.id, "userName": user.full_name}


def test_socket_join_update_and_disconnect(client, storage):
    alice, bob, request, step = _seed(storage)

    with client.websocket_connect("/ws/workspace") as bob_ws:
        with client.websocket_connect("/ws/workspace") as alice_ws:
            alice_ws.send_json(_join(alice, request))
            assert alice_ws.receive_json()["type"] == "user_joined"
            state = alice_ws.receive_json()
            assert state["type"] == "workspace_state"
            assert state["payload"]["steps"][0]["title"] == "Collect ledgers"

            bob_ws.send_json(_join(bob, request))
            joined = alice_ws.receive_json()
            assert joined["type"] == "user_joined"
            assert [user["id"] for user in joined["payload"]["activeUsers"]] == [alice.id, bob.id]
            assert bob_ws.receive_json()["type"] == "user_joined"
            assert bob_ws.receive_json()["type"] == "workspace_state"

            response = client.get(f"/api/workspaces/{request.id}")
            assert response.status_code == 200
            assert len(response.json()["activeUsers"]) == 2

            alice_ws.send_json(
                {
                    "type": "update_step",
                    "userId": alice.id,
                    "requestId": request.id,
                    "userName": alice.full_name,
                    "payload": {"stepId": step.id, "status": "in_progress"},
                }
            )
            for ws in (alice_ws, bob_ws):
                event = ws.receive_json()
                assert event["type"] == "step_updated"
                assert event["payload"]["step"]["status"] == "in_progress"

        left = bob_ws.receive_json()
        assert left["type"] == "user_left"
        assert left["userId"] == alice.id
        assert [user["id"] for user in left["payload"]["activeUsers"]] == [bob.id]


def test_socket_ping_and_garbage(client, storage):
    alice, _, request, _ = _seed(storage)

    with client.websocket_connect("/ws/workspace") as ws:
        ws.send_text("{not json")
        ws.send_json({"type": "ping", "userId": alice.id, "requestId": request.id})
        assert ws.receive_json()["type"] == "pong"


def test_active_workspaces_listing(client, storage):
    alice, _, request, _ = _seed(storage)

    assert client.get("/api/workspaces").json() == {"items": []}
    with client.websocket_connect("/ws/workspace") as ws:
        ws.send_json(_join(alice, request))
        ws.receive_json()
        ws.receive_json()
        items = client.get("/api/workspaces").json()["items"]
        assert [item["requestId"] for item in items] == [request.id]
        assert items[0]["activeUsers"][0]["fullName"] == "Alice Doe"


def test_binary_frames_are_handled_like_text(client, storage):
    alice, bob, request, _ = _seed(storage)

    with client.websocket_connect("/ws/workspace") as bob_ws:
        with client.websocket_connect("/ws/workspace") as alice_ws:
            alice_ws.send_json(_join(alice, request))
            alice_ws.receive_json()
            alice_ws.receive_json()
            bob_ws.send_json(_join(bob, request))
            alice_ws.receive_json()
            bob_ws.receive_json()
            bob_ws.receive_json()

            ping = {"type": "ping", "userId": alice.id, "requestId": request.id}
            alice_ws.send_bytes(json.dumps(ping).encode())
            assert alice_ws.receive_json()["type"] == "pong"
            alice_ws.send_bytes(b"")
            alice_ws.send_bytes(b"\x00\xff")
            alice_ws.send_json(ping)
            assert alice_ws.receive_json()["type"] == "pong"

            bob_ws.send_json({"type": "ping", "userId": bob.id, "requestId": request.id})
            assert bob_ws.receive_json()["type"] == "pong"
            assert len(client.get(f"/api/workspaces/{request.id}").json()["activeUsers"]) == 2
