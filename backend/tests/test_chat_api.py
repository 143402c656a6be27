"""Integration tests exercising API endpoints via FastAPI's TestClient."""

from __future__ import annotations

from typing import Any, Callable

import pytest
from fastapi.testclient import TestClient
from starlette.testclient import WebSocketTestSession

from app.models import BusinessSite, Company, Department, Position


def signup(client: TestClient, username: str, password: str = "secret-pass", full_name: str = "Test") -> dict[str, Any]:
    response = client.post(
        "/api/signup",
        json={"username": username, "fullName": full_name, "password": password},
    )
    assert response.status_code == 201, response.text
    return response.json()


def login(client: TestClient, username: str, password: str = "secret-pass") -> str:
    response = client.post("/api/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["accessToken"]


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def receive_until(
    connection: WebSocketTestSession,
    event: str,
    predicate: Callable[[Any], bool] | None = None,
) -> Any:
    """Read frames until one named *event* (and matching *predicate*) arrives."""

    while True:
        frame = connection.receive_json()
        if frame["event"] == event and (predicate is None or predicate(frame["data"])):
            return frame["data"]


def test_health_and_chat_config(client: TestClient):
    assert client.get("/health").json()["status"] == "ok"

    config = client.get("/api/config/chat").json()
    assert config == {"typingTimeoutMs": 2000, "messageMaxLength": 1000}


def test_signup_login_and_user_list(client: TestClient):
    user = signup(client, "alice", full_name="Alice Kim")
    assert user["username"] == "alice"
    assert user["fullName"] == "Alice Kim"
    assert "hashedPassword" not in user

    duplicate = client.post(
        "/api/signup",
        json={"username": "alice", "fullName": "Other", "password": "secret-pass"},
    )
    assert duplicate.status_code == 400

    response = client.post("/api/login", json={"username": "alice", "password": "secret-pass"})
    assert response.status_code == 200
    body = response.json()
    assert body["tokenType"] == "bearer"
    assert body["user"]["fullName"] == "Alice Kim"

    rejected = client.post("/api/login", json={"username": "alice", "password": "wrong-pass"})
    assert rejected.status_code == 401

    signup(client, "bob")
    assert [item["username"] for item in client.get("/api/users").json()] == ["alice", "bob"]


def test_room_creation_endpoint(client: TestClient):
    response = client.post("/api/chat/room", json={"participants": ["bob", "alice"], "createdBy": "alice"})
    assert response.status_code == 200, response.text
    room = response.json()
    assert room["participants"] == ["alice", "bob"]
    assert room["isGroup"] is False
    assert room["createdBy"] == "alice"

    again = client.post("/api/chat/room", json={"participants": ["alice", "bob"], "createdBy": "bob"})
    assert again.json()["id"] == room["id"]

    group = client.post(
        "/api/chat/room",
        json={"participants": ["carol", "alice", "bob"], "createdBy": "carol", "name": "Team"},
    ).json()
    assert group["isGroup"] is True
    assert group["name"] == "Team"

    invalid = client.post("/api/chat/room", json={"participants": ["alice", "alice"], "createdBy": "alice"})
    assert invalid.status_code == 400


def test_my_rooms_requires_a_token(client: TestClient):
    signup(client, "alice")
    token = login(client, "alice")
    client.post("/api/chat/room", json={"participants": ["alice", "bob"], "createdBy": "alice"})
    client.post("/api/chat/room", json={"participants": ["bob", "carol"], "createdBy": "bob"})

    assert client.get("/api/chat/rooms").status_code == 401

    rooms = client.get("/api/chat/rooms", headers=auth_headers(token)).json()
    assert [room["participants"] for room in rooms] == [["alice", "bob"]]


def test_websocket_chat_exchange(client: TestClient):
    signup(client, "alice", full_name="Alice Kim")
    room_id = client.post(
        "/api/chat/room", json={"participants": ["alice", "bob"], "createdBy": "alice"}
    ).json()["id"]

    with client.websocket_connect("/ws/chat") as alice, client.websocket_connect("/ws/chat") as bob:
        alice.send_json({"event": "login", "data": "alice"})
        rooms = receive_until(alice, "chat_room_list")
        assert [room["id"] for room in rooms] == [room_id]
        receive_until(alice, "all_messages_history")

        bob.send_json({"event": "login", "data": {"username": "bob"}})
        receive_until(bob, "online_users_update", lambda users: users == ["alice", "bob"])
        assert receive_until(bob, "initial_unread_counts") == {}
        receive_until(bob, "all_messages_history")

        bob.send_json({"event": "get_chat_history", "data": {"roomId": room_id}})
        assert receive_until(bob, "chat_history") == []

        alice.send_json(
            {
                "event": "send_message",
                "data": {"roomId": room_id, "sender": "alice", "message": "hi bob", "clientMessageId": "c-1"},
            }
        )
        ack = receive_until(alice, "message_sent")
        assert ack["clientMessageId"] == "c-1"
        assert ack["message"]["sequence"] == 1
        assert ack["message"]["senderFullName"] == "Alice Kim"

        delivered = receive_until(bob, "receive_message")
        assert delivered["message"] == "hi bob"
        assert delivered["roomId"] == room_id

        bob.send_json({"event": "typing_start", "data": {"roomId": room_id, "sender": "bob"}})
        assert receive_until(alice, "user_typing") == {"sender": "bob", "roomId": room_id}

        bob.send_json({"event": "mark_as_read", "data": {"roomId": room_id, "readerUsername": "bob"}})
        assert receive_until(alice, "messages_read") == {
            "readerUsername": "bob",
            "roomId": room_id,
            "lastReadSequence": 1,
        }

        bob.send_text("not json")
        assert receive_until(bob, "error")["code"] == "invalid_frame"

        bob.send_json({"event": "ping"})
        assert receive_until(bob, "pong") is None


@pytest.fixture()
def directory(session_factory) -> dict[str, int]:
    with session_factory() as session:
        acme = Company(name="Acme", code="ACM")
        borealis = Company(name="Borealis", code="BOR")
        seoul = BusinessSite(name="Seoul HQ", code="ACM-SEL", company=acme)
        busan = BusinessSite(name="Busan Plant", code="ACM-PUS", company=acme)
        oslo = BusinessSite(name="Oslo", code="BOR-OSL", company=borealis)
        platform = Department(name="Platform", code="SEL-PLT", business_site=seoul)
        assembly = Department(name="Assembly", code="PUS-ASM", business_site=busan)
        engineer = Position(name="Engineer", code="ENG")
        manager = Position(name="Manager", code="MGR")
        session.add_all([acme, borealis, seoul, busan, oslo, platform, assembly, engineer, manager])
        session.commit()
        return {
            "acme": acme.id,
            "borealis": borealis.id,
            "seoul": seoul.id,
            "busan": busan.id,
            "oslo": oslo.id,
            "platform": platform.id,
            "assembly": assembly.id,
            "engineer": engineer.id,
            "manager": manager.id,
        }


def test_directory_listings(client: TestClient, directory: dict[str, int]):
    companies = client.get("/api/companies").json()
    assert [(item["name"], item["code"]) for item in companies] == [("Acme", "ACM"), ("Borealis", "BOR")]

    sites = client.get("/api/sites").json()
    assert [item["name"] for item in sites] == ["Busan Plant", "Oslo", "Seoul HQ"]
    assert sites[0]["companyId"] == directory["acme"]

    acme_sites = client.get(f"/api/sites/{directory['acme']}").json()
    assert [item["code"] for item in acme_sites] == ["ACM-PUS", "ACM-SEL"]
    assert client.get("/api/sites/9999").json() == []

    departments = client.get(f"/api/departments/{directory['seoul']}").json()
    assert departments == [
        {"id": directory["platform"], "name": "Platform", "code": "SEL-PLT", "businessSiteId": directory["seoul"]}
    ]
    assert [item["name"] for item in client.get("/api/departments").json()] == ["Assembly", "Platform"]

    positions = client.get("/api/positions").json()
    assert [item["code"] for item in positions] == ["ENG", "MGR"]


def test_signup_with_affiliation_is_shown_in_user_list(client: TestClient, directory: dict[str, int]):
    created = client.post(
        "/api/signup",
        json={
            "username": "minji",
            "fullName": "Minji Park",
            "password": "secret-pass",
            "code": "E-1001",
            "departmentId": directory["platform"],
            "positionId": directory["engineer"],
        },
    )
    assert created.status_code == 201, created.text
    user = created.json()
    assert user["code"] == "E-1001"
    assert user["department"] == {"id": directory["platform"], "name": "Platform", "code": "SEL-PLT"}
    assert user["businessSite"]["name"] == "Seoul HQ"
    assert user["company"]["code"] == "ACM"
    assert user["position"]["name"] == "Engineer"

    signup(client, "guest")
    listed = {item["username"]: item for item in client.get("/api/users").json()}
    assert listed["minji"]["department"]["name"] == "Platform"
    assert listed["minji"]["company"]["name"] == "Acme"
    assert listed["guest"]["company"] is None
    assert listed["guest"]["code"] is None


@pytest.mark.parametrize(
    ("fields", "detail"),
    [
        ({"companyId": "borealis", "businessSiteId": "seoul"}, "Business site does not belong to the company"),
        ({"businessSiteId": "busan", "departmentId": "platform"}, "Department does not belong to the business site"),
        ({"positionId": 9999}, "Position not found"),
    ],
)
def test_signup_rejects_inconsistent_affiliation(client: TestClient, directory: dict[str, int], fields, detail):
    payload = {"username": "drifter", "fullName": "Drifter", "password": "secret-pass"}
    payload.update({key: directory.get(value, value) for key, value in fields.items()})

    response = client.post("/api/signup", json=payload)

    assert response.status_code == 400
    assert response.json()["detail"] == detail
    assert all(item["username"] != "drifter" for item in client.get("/api/users").json())


def test_signup_rejects_duplicate_employee_code(client: TestClient):
    first = client.post(
        "/api/signup",
        json={"username": "alice", "fullName": "Alice", "password": "secret-pass", "code": "E-1"},
    )
    assert first.status_code == 201

    second = client.post(
        "/api/signup",
        json={"username": "bob", "fullName": "Bob", "password": "secret-pass", "code": "E-1"},
    )
    assert second.status_code == 400
    assert second.json()["detail"] == "Employee code is already registered"
