import pytest

from campushub.errors import NotFoundError, NotParticipant, SelfConversation, ValidationError


# --- conversation store ---
def test_find_or_create_is_idempotent(store, alice, bob):
    first = store.find_or_create_conversation(alice["id"], bob["id"])
    assert first["created"] is True
    assert first["other_user"]["name"] == "Bob"

    again = store.find_or_create_conversation(alice["id"], bob["id"])
    reverse = store.find_or_create_conversation(bob["id"], alice["id"])
    assert again["created"] is False
    assert again["id"] == reverse["id"] == first["id"]
    assert reverse["other_user"]["name"] == "Alice"


def test_conversation_with_self_is_rejected(store, alice):
    with pytest.raises(SelfConversation):
        store.find_or_create_conversation(alice["id"], alice["id"])


def test_conversation_with_unknown_user(store, alice):
    with pytest.raises(NotFoundError):
        store.find_or_create_conversation(alice["id"], 9999)


def test_send_increments_only_the_other_side(store, alice, bob):
    cid = store.find_or_create_conversation(alice["id"], bob["id"])["id"]
    message = store.send_message(cid, alice["id"], "hello")
    store.send_message(cid, alice["id"], "are you there?")

    assert message["is_read"] is False
    assert message["sender"]["id"] == alice["id"]
    assert store.unread_count(cid, bob["id"]) == 2
    assert store.unread_count(cid, alice["id"]) == 0


def test_send_requires_participation(store, make_user, alice, bob):
    carol = make_user("Carol")
    cid = store.find_or_create_conversation(alice["id"], bob["id"])["id"]
    with pytest.raises(NotParticipant):
        store.send_message(cid, carol["id"], "let me in")
    with pytest.raises(NotParticipant):
        store.list_messages(cid, carol["id"])
    with pytest.raises(NotParticipant):
        store.mark_read(cid, carol["id"])


def test_unknown_conversation_reads_as_not_participant(store, alice):
    missing = 9999
    with pytest.raises(NotParticipant):
        store.send_message(missing, alice["id"], "anyone?")
    with pytest.raises(NotParticipant):
        store.list_messages(missing, alice["id"])
    with pytest.raises(NotParticipant):
        store.mark_read(missing, alice["id"])
    with pytest.raises(NotParticipant):
        store.leave_conversation(missing, alice["id"])
    assert not store.is_participant(missing, alice["id"])


def test_send_rejects_blank_content(store, alice, bob):
    cid = store.find_or_create_conversation(alice["id"], bob["id"])["id"]
    with pytest.raises(ValidationError):
        store.send_message(cid, alice["id"], "   ")


def test_mark_read_resets_counter_and_flags(store, alice, bob):
    cid = store.find_or_create_conversation(alice["id"], bob["id"])["id"]
    store.send_message(cid, alice["id"], "one")
    store.send_message(cid, alice["id"], "two")
    store.send_message(cid, bob["id"], "three")

    assert store.mark_read(cid, bob["id"]) == 2
    assert store.unread_count(cid, bob["id"]) == 0
    # bob's own message stays unread for alice
    assert store.unread_count(cid, alice["id"]) == 1

    items, _ = store.list_messages(cid, bob["id"])
    assert [m["is_read"] for m in items] == [True, True, False]
    assert store.mark_read(cid, bob["id"]) == 0


def test_list_messages_pages_back_from_newest(store, alice, bob):
    cid = store.find_or_create_conversation(alice["id"], bob["id"])["id"]
    for i in range(5):
        store.send_message(cid, alice["id"], f"m{i}")

    page1, total = store.list_messages(cid, bob["id"], page=1, page_size=2)
    page2, _ = store.list_messages(cid, bob["id"], page=2, page_size=2)
    page3, _ = store.list_messages(cid, bob["id"], page=3, page_size=2)
    assert total == 5
    assert [m["content"] for m in page1] == ["m3", "m4"]
    assert [m["content"] for m in page2] == ["m1", "m2"]
    assert [m["content"] for m in page3] == ["m0"]


def test_list_conversations_most_recent_first(store, make_user, alice, bob):
    carol = make_user("Carol")
    with_bob = store.find_or_create_conversation(alice["id"], bob["id"])["id"]
    with_carol = store.find_or_create_conversation(alice["id"], carol["id"])["id"]
    store.send_message(with_carol, carol["id"], "first")
    store.send_message(with_bob, bob["id"], "latest")

    items, total = store.list_conversations(alice["id"])
    assert total == 2
    assert [c["id"] for c in items] == [with_bob, with_carol]
    assert items[0]["other_user"]["name"] == "Bob"
    assert items[0]["last_message"]["content"] == "latest"
    assert items[0]["unread_count"] == 1


def test_empty_conversation_has_no_last_message(store, alice, bob):
    store.find_or_create_conversation(alice["id"], bob["id"])
    items, _ = store.list_conversations(bob["id"])
    assert items[0]["last_message"] is None
    assert items[0]["unread_count"] == 0
    assert items[0]["last_message_at"] is not None


def test_leave_removes_only_the_caller(store, alice, bob):
    cid = store.find_or_create_conversation(alice["id"], bob["id"])["id"]
    store.send_message(cid, alice["id"], "bye")
    store.leave_conversation(cid, alice["id"])

    assert not store.is_participant(cid, alice["id"])
    assert store.is_participant(cid, bob["id"])
    assert store.list_conversations(alice["id"])[1] == 0
    items, total = store.list_messages(cid, bob["id"])
    assert total == 1
    with pytest.raises(NotParticipant):
        store.leave_conversation(cid, alice["id"])


def test_invalid_page_window(store, alice):
    with pytest.raises(ValidationError):
        store.list_conversations(alice["id"], page=0)


# --- HTTP ---
def test_two_user_scenario(client, alice, bob):
    res = client.post("/api/messages/conversations", headers=alice["headers"], json={"userId": bob["id"]})
    assert res.status_code == 201
    cid = res.json()["data"]["id"]
    assert res.json()["data"]["otherUser"]["id"] == bob["id"]

    again = client.post("/api/messages/conversations", headers=bob["headers"], json={"userId": alice["id"]})
    assert again.status_code == 200
    assert again.json()["data"]["id"] == cid

    sent = client.post("/api/messages", headers=alice["headers"], json={"conversationId": cid, "content": "hi"})
    assert sent.status_code == 201
    message = sent.json()["data"]
    assert message["isRead"] is False
    assert message["conversationId"] == cid
    assert message["senderId"] == alice["id"]

    listing = client.get("/api/messages/conversations", headers=bob["headers"]).json()
    assert listing["pagination"] == {"page": 1, "limit": 20, "total": 1, "totalPages": 1}
    summary = listing["data"][0]
    assert summary["unreadCount"] == 1
    assert summary["lastMessage"]["content"] == "hi"
    assert summary["lastMessage"]["senderId"] == alice["id"]

    read = client.put(f"/api/messages/{cid}/read", headers=bob["headers"])
    assert read.status_code == 200
    assert read.json()["data"]["marked"] == 1

    listing = client.get("/api/messages/conversations", headers=bob["headers"]).json()
    assert listing["data"][0]["unreadCount"] == 0

    history = client.get(f"/api/messages/{cid}", headers=bob["headers"]).json()
    assert history["data"][0]["isRead"] is True
    assert history["pagination"]["limit"] == 50


def test_http_conversation_errors(client, alice):
    res = client.post("/api/messages/conversations", headers=alice["headers"], json={"userId": alice["id"]})
    assert res.status_code == 409
    assert res.json()["message"] == "Cannot create conversation with yourself"

    res = client.post("/api/messages/conversations", headers=alice["headers"], json={"userId": 4242})
    assert res.status_code == 404


def test_http_non_participant_is_forbidden(client, make_user, alice, bob):
    carol = make_user("Carol")
    cid = client.post(
        "/api/messages/conversations", headers=alice["headers"], json={"userId": bob["id"]}
    ).json()["data"]["id"]

    assert client.get(f"/api/messages/{cid}", headers=carol["headers"]).status_code == 403
    assert client.put(f"/api/messages/{cid}/read", headers=carol["headers"]).status_code == 403
    assert client.delete(f"/api/messages/{cid}", headers=carol["headers"]).status_code == 403
    res = client.post("/api/messages", headers=carol["headers"], json={"conversationId": cid, "content": "x"})
    assert res.status_code == 403
    assert res.json()["message"] == "You are not a participant in this conversation"


@pytest.mark.parametrize("method, path, body", [
    ("GET", "/api/messages/9999", None),
    ("PUT", "/api/messages/9999/read", None),
    ("DELETE", "/api/messages/9999", None),
    ("POST", "/api/messages", {"conversationId": 9999, "content": "hello?"}),
])
def test_http_unknown_conversation_is_forbidden(client, alice, method, path, body):
    res = client.request(method, path, headers=alice["headers"], json=body)
    assert res.status_code == 403
    assert res.json()["message"] == "You are not a participant in this conversation"


def test_http_validation_and_pagination_bounds(client, alice):
    res = client.post("/api/messages", headers=alice["headers"], json={"conversationId": 1, "content": ""})
    assert res.status_code == 400
    assert res.json()["success"] is False
    assert res.json()["errors"][0]["field"] == "content"

    assert client.get("/api/messages/conversations?limit=101", headers=alice["headers"]).status_code == 400
    assert client.get("/api/messages/conversations?page=0", headers=alice["headers"]).status_code == 400


def test_http_leave_conversation(client, alice, bob):
    cid = client.post(
        "/api/messages/conversations", headers=alice["headers"], json={"userId": bob["id"]}
    ).json()["data"]["id"]
    assert client.delete(f"/api/messages/{cid}", headers=alice["headers"]).status_code == 200
    assert client.get("/api/messages/conversations", headers=alice["headers"]).json()["data"] == []
    assert len(client.get("/api/messages/conversations", headers=bob["headers"]).json()["data"]) == 1


def test_messages_require_authentication(client):
    assert client.get("/api/messages/conversations").status_code == 401


def test_health_and_unknown_route(client):
    assert client.get("/health").json()["success"] is True
    res = client.get("/api/nowhere")
    assert res.status_code == 404
    assert res.json()["success"] is False
