import asyncio
import json

import pytest
import requests

from quickdesk.errors import EntityNotFoundError, GatewayError, NotificationError
from quickdesk.gateway import HttpEntityGateway, InMemoryGateway
from quickdesk.notifications import HttpEmailSender
from quickdesk.schema import Ticket


class _FakeResponse:
    def __init__(self, status_code=200, payload=None, text="", bad_json=False):
        self.status_code = status_code
        self._payload = payload
        self.text = text
        self._bad_json = bad_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)

    def json(self):
        if self._bad_json:
            raise ValueError("Expecting value")
        return self._payload


class _FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response or _FakeResponse()
        self.error = error
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if self.error:
            raise self.error
        return self.response

    def post(self, url, **kwargs):
        return self.request("POST", url, **kwargs)


TICKET_JSON = {
    "id": "T-AA1B2C",
    "title": "VPN",
    "description": "drops",
    "category_id": "C-NET001",
    "requester_email": "bob@company.com",
}


# ── InMemoryGateway ───────────────────────────────────────────────────────────

def _memory_gateway():
    gateway = InMemoryGateway()
    gateway.seed("Ticket", [
        Ticket(id="T-1", title="a", description="d", category_id="C", requester_email="x@y.com",
               last_reply="2026-01-01T00:00:00+00:00"),
        Ticket(id="T-2", title="b", description="d", category_id="C", requester_email="z@y.com",
               last_reply="2026-03-01T00:00:00+00:00"),
        Ticket(id="T-3", title="c", description="d", category_id="C", requester_email="x@y.com",
               last_reply="2026-02-01T00:00:00+00:00"),
    ])
    return gateway


def test_memory_list_sorts_descending_and_ascending():
    gateway = _memory_gateway()
    assert [t.id for t in asyncio.run(gateway.list("Ticket", "-last_reply"))] == ["T-2", "T-3", "T-1"]
    assert [t.id for t in asyncio.run(gateway.list("Ticket", "last_reply"))] == ["T-1", "T-3", "T-2"]
    assert [t.id for t in asyncio.run(gateway.list("Ticket"))] == ["T-1", "T-2", "T-3"]


def test_memory_filter_uses_equality():
    gateway = _memory_gateway()
    result = asyncio.run(gateway.filter("Ticket", {"requester_email": "x@y.com"}))
    assert [t.id for t in result] == ["T-1", "T-3"]


def test_memory_reads_return_copies():
    gateway = _memory_gateway()
    ticket = asyncio.run(gateway.get("Ticket", "T-1"))
    ticket.status = "closed"
    assert asyncio.run(gateway.get("Ticket", "T-1")).status == "open"


def test_memory_update_merges_fields():
    gateway = _memory_gateway()
    updated = asyncio.run(gateway.update("Ticket", "T-1", {"status": "resolved"}))
    assert updated.status == "resolved"
    assert updated.title == "a"


def test_memory_missing_record():
    gateway = _memory_gateway()
    with pytest.raises(EntityNotFoundError):
        asyncio.run(gateway.get("Ticket", "T-404"))
    with pytest.raises(EntityNotFoundError):
        asyncio.run(gateway.update("Ticket", "T-404", {"status": "open"}))


def test_memory_invalid_write_is_a_gateway_error():
    gateway = _memory_gateway()
    with pytest.raises(GatewayError):
        asyncio.run(gateway.update("Ticket", "T-1", {"status": "archived"}))


def test_memory_unknown_entity():
    with pytest.raises(GatewayError):
        asyncio.run(InMemoryGateway().list("Widget"))


# ── HttpEntityGateway ─────────────────────────────────────────────────────────

def test_http_get_parses_record_and_sends_token():
    session = _FakeSession(_FakeResponse(payload=TICKET_JSON))
    gateway = HttpEntityGateway("https://api.example.com/", api_token="secret", session=session)

    ticket = asyncio.run(gateway.get("Ticket", "T-AA1B2C"))

    assert ticket.id == "T-AA1B2C"
    method, url, kwargs = session.calls[0]
    assert method == "GET"
    assert url == "https://api.example.com/entities/Ticket/T-AA1B2C"
    assert kwargs["headers"]["Authorization"] == "Bearer secret"
    assert kwargs["timeout"] == 15.0


def test_http_filter_sends_query_and_sort():
    session = _FakeSession(_FakeResponse(payload=[TICKET_JSON]))
    gateway = HttpEntityGateway("https://api.example.com", session=session)

    tickets = asyncio.run(gateway.filter("Ticket", {"requester_email": "bob@company.com"}, "-last_reply"))

    assert len(tickets) == 1
    params = session.calls[0][2]["params"]
    assert json.loads(params["q"]) == {"requester_email": "bob@company.com"}
    assert params["sort"] == "-last_reply"


def test_http_update_puts_fields():
    session = _FakeSession(_FakeResponse(payload={**TICKET_JSON, "status": "closed"}))
    gateway = HttpEntityGateway("https://api.example.com", session=session)

    ticket = asyncio.run(gateway.update("Ticket", "T-AA1B2C", {"status": "closed"}))

    assert ticket.status == "closed"
    method, _, kwargs = session.calls[0]
    assert method == "PUT"
    assert kwargs["json"] == {"status": "closed"}


def test_http_404_is_not_found():
    session = _FakeSession(_FakeResponse(status_code=404, text="missing"))
    gateway = HttpEntityGateway("https://api.example.com", session=session)
    with pytest.raises(EntityNotFoundError) as exc:
        asyncio.run(gateway.get("Ticket", "T-404"))
    assert exc.value.entity_id == "T-404"


def test_http_server_error_is_gateway_error():
    session = _FakeSession(_FakeResponse(status_code=500, text="boom"))
    gateway = HttpEntityGateway("https://api.example.com", session=session)
    with pytest.raises(GatewayError) as exc:
        asyncio.run(gateway.list("Ticket"))
    assert "500" in exc.value.message


def test_http_network_error_is_gateway_error():
    session = _FakeSession(error=requests.ConnectionError("refused"))
    gateway = HttpEntityGateway("https://api.example.com", session=session)
    with pytest.raises(GatewayError):
        asyncio.run(gateway.create("Ticket", TICKET_JSON))


def test_http_bad_json_is_gateway_error():
    session = _FakeSession(_FakeResponse(bad_json=True))
    gateway = HttpEntityGateway("https://api.example.com", session=session)
    with pytest.raises(GatewayError):
        asyncio.run(gateway.get("Ticket", "T-AA1B2C"))


def test_http_list_expects_a_list():
    session = _FakeSession(_FakeResponse(payload=TICKET_JSON))
    gateway = HttpEntityGateway("https://api.example.com", session=session)
    with pytest.raises(GatewayError):
        asyncio.run(gateway.list("Ticket"))


# ── HttpEmailSender ───────────────────────────────────────────────────────────

def test_email_sender_posts_message():
    session = _FakeSession()
    sender = HttpEmailSender("https://mail.example.com/send", api_token="k", session=session)

    asyncio.run(sender.send("bob@company.com", "Hi", "Body"))

    method, url, kwargs = session.calls[0]
    assert method == "POST"
    assert kwargs["json"] == {"to": "bob@company.com", "subject": "Hi", "body": "Body"}


def test_email_sender_failure_is_notification_error():
    session = _FakeSession(_FakeResponse(status_code=503))
    sender = HttpEmailSender("https://mail.example.com/send", session=session)
    with pytest.raises(NotificationError) as exc:
        asyncio.run(sender.send("bob@company.com", "Hi", "Body"))
    assert exc.value.entity_id == "bob@company.com"


def test_http_requests_json_error_is_reported_as_bad_json():
    class _RequestsJsonResponse(_FakeResponse):
        def json(self):
            raise requests.exceptions.JSONDecodeError("Expecting value", "<html>", 0)

    session = _FakeSession(_RequestsJsonResponse())
    gateway = HttpEntityGateway("https://api.example.com", session=session)
    with pytest.raises(GatewayError) as exc:
        asyncio.run(gateway.get("Ticket", "T-AA1B2C"))
    assert exc.value.message == "Entity service response was not valid JSON"
