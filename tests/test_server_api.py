import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from jobboard.server import auth
from jobboard.server.database import Base, get_db
from jobboard.server.main import app

PASSWORD = "correct horse battery"


@pytest.fixture
def client():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    def override_get_db():
        db = TestingSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    auth.TOKEN_STORE.clear()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    auth.TOKEN_STORE.clear()
    engine.dispose()


def register(client, email, name="User", role="JOB_SEEKER", password=PASSWORD):
    return client.post("/auth/register", json={"email": email, "password": password, "name": name, "role": role})


def sign_in(client, email, password=PASSWORD):
    resp = client.post("/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    body = resp.json()
    return {"Authorization": f"Bearer {body['token']}"}, body["user"]


def test_register_and_login(client):
    resp = register(client, "Ada@Example.com", name="Ada", role="EMPLOYER")
    assert resp.status_code == 201
    headers, user = sign_in(client, "ada@example.com")
    assert user["email"] == "ada@example.com"
    assert user["role"] == "EMPLOYER"
    assert headers["Authorization"].startswith("Bearer ")


def test_register_rejects_duplicates_and_weak_passwords(client):
    assert register(client, "ada@example.com").status_code == 201
    dup = register(client, "ada@example.com")
    assert dup.status_code == 400
    assert dup.json()["detail"] == "Email already registered"
    weak = register(client, "bob@example.com", password="123456789")
    assert weak.status_code == 400
    assert weak.json()["detail"] == "Password does not meet policy"


def test_login_locks_after_repeated_failures(client):
    register(client, "ada@example.com")
    for _ in range(auth.LOGIN_LOCK_ATTEMPTS):
        resp = client.post("/auth/login", json={"email": "ada@example.com", "password": "wrong password"})
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Invalid credentials"
    locked = client.post("/auth/login", json={"email": "ada@example.com", "password": PASSWORD})
    assert locked.status_code == 403


def test_requests_need_a_valid_token(client):
    assert client.get("/jobs").status_code == 401
    assert client.get("/jobs", headers={"Authorization": "Bearer nope"}).json()["detail"] == "Invalid token"


def test_logout_revokes_token(client):
    register(client, "ada@example.com")
    headers, _ = sign_in(client, "ada@example.com")
    assert client.post("/auth/logout", headers=headers).status_code == 200
    assert client.get("/jobs", headers=headers).status_code == 401


def test_profile_lookup_and_update(client):
    register(client, "ada@example.com", name="Ada")
    register(client, "bob@example.com", name="Bob")
    headers, ada = sign_in(client, "ada@example.com")

    found = client.get("/users", params={"email": " BOB@example.com "}, headers=headers).json()
    assert [u["name"] for u in found] == ["Bob"]

    update = {"email": "ada@analytical.engine", "name": "Ada Lovelace", "role": "JOB_SEEKER"}
    resp = client.put(f"/users/{ada['id']}", json=update, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["name"] == "Ada Lovelace"

    foreign = client.put(f"/users/{found[0]['id']}", json=update, headers=headers)
    assert foreign.status_code == 403
    assert foreign.json()["detail"] == "You can only edit your own profile"

    clash = client.put(
        f"/users/{ada['id']}",
        json={"email": "bob@example.com", "name": "Ada", "role": "JOB_SEEKER"},
        headers=headers,
    )
    assert clash.status_code == 400


def test_post_and_list_jobs(client):
    register(client, "ada@example.com", role="EMPLOYER")
    headers, ada = sign_in(client, "ada@example.com")
    payload = {
        "title": "Engineer",
        "company": "Acme",
        "description": "Build things",
        "location": "Remote",
        "salary": "90k",
        "requirements": ["Python", " ", "SQL"],
        "type": "CONTRACT",
    }
    created = client.post("/jobs", json=payload, headers=headers)
    assert created.status_code == 201
    job = created.json()
    assert job["requirements"] == ["Python", "SQL"]
    assert job["posted_by"] == ada["id"]

    listed = client.get("/jobs", headers=headers).json()
    assert [j["id"] for j in listed] == [job["id"]]
    assert client.get(f"/jobs/{job['id']}", headers=headers).json()["title"] == "Engineer"
    missing = client.get("/jobs/unknown", headers=headers)
    assert missing.status_code == 404
    assert missing.json()["detail"] == "Job not found"


def test_chat_room_lifecycle(client):
    register(client, "ada@example.com")
    register(client, "bob@example.com")
    register(client, "eve@example.com")
    ada_headers, ada = sign_in(client, "ada@example.com")
    bob_headers, bob = sign_in(client, "bob@example.com")
    eve_headers, _ = sign_in(client, "eve@example.com")

    opened = client.post("/rooms", json={"peer_id": bob["id"]}, headers=ada_headers).json()
    assert set(opened["participant_ids"]) == {ada["id"], bob["id"]}
    reopened = client.post("/rooms", json={"peer_id": ada["id"]}, headers=bob_headers).json()
    assert reopened["id"] == opened["id"]

    sent = client.post("/messages", json={"receiver_id": bob["id"], "content": "hi"}, headers=ada_headers)
    assert sent.status_code == 200
    assert sent.json()["room_id"] == opened["id"]
    client.post("/messages", json={"receiver_id": ada["id"], "content": "hello"}, headers=bob_headers)

    messages = client.get(f"/rooms/{opened['id']}/messages", headers=bob_headers).json()
    assert [m["content"] for m in messages] == ["hi", "hello"]
    assert messages[0]["sender_id"] == ada["id"]
    assert messages[0]["is_read"] is False

    rooms = client.get("/rooms", headers=ada_headers).json()
    assert rooms[0]["last_message_preview"] == "hello"
    assert client.get("/rooms", headers=eve_headers).json() == []

    foreign = client.get(f"/rooms/{opened['id']}/messages", headers=eve_headers)
    assert foreign.status_code == 403
    assert foreign.json()["detail"] == "Not a participant of this chat"
    assert client.get("/rooms/nope/messages", headers=eve_headers).status_code == 404


def test_invalid_profile_update_is_described_per_field(client):
    register(client, "ada@example.com", name="Ada")
    headers, ada = sign_in(client, "ada@example.com")
    resp = client.put(f"/users/{ada['id']}", json={"email": "", "name": "Ada", "role": "JOB_SEEKER"}, headers=headers)
    assert resp.status_code == 422
    problems = resp.json()["detail"]
    assert problems[0]["loc"][-1] == "email"
    assert problems[0]["msg"]


def test_cannot_chat_with_yourself(client):
    register(client, "ada@example.com")
    headers, ada = sign_in(client, "ada@example.com")
    resp = client.post("/rooms", json={"peer_id": ada["id"]}, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "You cannot chat with yourself"
