# tests/test_messages.py
from fastapi.testclient import TestClient

from conftest import auth_headers, make_user
from tsoam.main import app

client = TestClient(app)


def _people(db):
    pastor = make_user(db, "pastor", full_name="Pastor James")
    alice = make_user(db, "user", email="alice@tsoam.test", full_name="Alice")
    bob = make_user(db, "user", email="bob@tsoam.test", full_name="Bob")
    return pastor, alice, bob


def _send(sender, recipients, subject="Choir practice", content="Thursday 6pm"):
    r = client.post(
        "/api/messages",
        json={"recipient_ids": [str(u.id) for u in recipients], "subject": subject, "content": content},
        headers=auth_headers(sender),
    )
    assert r.status_code == 201, r.text
    return r.json()


def test_send_and_inbox(db):
    pastor, alice, bob = _people(db)
    msg = _send(pastor, [alice, bob])
    assert msg["sender_name"] == "Pastor James"
    assert msg["thread_depth"] == 0
    assert msg["is_reply"] is False

    inbox = client.get("/api/messages", headers=auth_headers(alice)).json()
    assert [m["subject"] for m in inbox] == ["Choir practice"]

    stats = client.get("/api/messages/stats", headers=auth_headers(alice)).json()
    assert stats == {"sent": 0, "received": 1, "unread": 1, "threads": 1}


def test_threaded_replies(db):
    pastor, alice, bob = _people(db)
    root = _send(pastor, [alice, bob])

    r = client.post("/api/messages/reply", json={"original_message_id": root["id"], "content": "I'll be there"}, headers=auth_headers(alice))
    assert r.status_code == 201, r.text
    first = r.json()
    assert first["subject"] == "Re: Choir practice"
    assert first["recipient_ids"] == [str(pastor.id)]
    assert first["parent_message_id"] == root["id"]
    assert first["thread_root_id"] == root["id"]
    assert first["thread_depth"] == 1

    r = client.post(
        "/api/messages/reply",
        json={"original_message_id": first["id"], "content": "Thanks", "reply_to_all": True},
        headers=auth_headers(pastor),
    )
    second = r.json()
    assert second["subject"] == "Re: Choir practice"
    assert second["thread_root_id"] == root["id"]
    assert second["thread_depth"] == 2
    assert second["recipient_ids"] == [str(alice.id)]

    thread = client.get(f"/api/messages/thread/{second['id']}", headers=auth_headers(pastor)).json()
    assert sorted(m["thread_depth"] for m in thread) == [0, 1, 2]

    # replying marks the original read for the replier
    stats = client.get("/api/messages/stats", headers=auth_headers(alice)).json()
    assert stats["unread"] == 1  # the pastor's "Thanks"
    assert stats["threads"] == 1

    inbox = client.get("/api/messages", headers=auth_headers(pastor)).json()
    root_row = next(m for m in inbox if m["id"] == root["id"])
    assert root_row["reply_count"] == 2


def test_reply_to_all_skips_self(db):
    pastor, alice, bob = _people(db)
    root = _send(pastor, [alice, bob])
    r = client.post(
        "/api/messages/reply",
        json={"original_message_id": root["id"], "content": "Noted", "reply_to_all": True},
        headers=auth_headers(alice),
    )
    assert sorted(r.json()["recipient_ids"]) == sorted([str(pastor.id), str(bob.id)])


def test_mark_read_and_per_user_delete(db):
    pastor, alice, bob = _people(db)
    msg = _send(pastor, [alice, bob])

    r = client.patch(f"/api/messages/{msg['id']}/read", headers=auth_headers(alice))
    assert r.json()["read_by"] == [str(alice.id)]
    assert r.json()["status"] == "read"

    r = client.request("DELETE", "/api/messages/delete", json={"message_ids": [msg["id"]]}, headers=auth_headers(alice))
    assert r.json() == {"deleted": 1}
    assert client.get("/api/messages", headers=auth_headers(alice)).json() == []
    assert len(client.get("/api/messages", headers=auth_headers(bob)).json()) == 1
    assert client.get(f"/api/messages/thread/{msg['id']}", headers=auth_headers(alice)).status_code == 404


def test_outsiders_cannot_read(db):
    pastor, alice, bob = _people(db)
    msg = _send(pastor, [alice])
    assert client.patch(f"/api/messages/{msg['id']}/read", headers=auth_headers(bob)).status_code == 404
    r = client.post("/api/messages/reply", json={"original_message_id": msg["id"], "content": "x"}, headers=auth_headers(bob))
    assert r.status_code == 404


def test_only_admin_reads_other_mailboxes(db):
    pastor, alice, bob = _people(db)
    _send(pastor, [alice])
    admin = make_user(db, "admin")
    r = client.get("/api/messages", params={"user_id": str(alice.id)}, headers=auth_headers(bob))
    assert r.status_code == 403
    r = client.get("/api/messages", params={"user_id": str(alice.id)}, headers=auth_headers(admin))
    assert len(r.json()) == 1
