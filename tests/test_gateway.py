"""
Gateway Client Tests
HTTP calls are intercepted at the requests.Session level.
"""

import logging
from types import SimpleNamespace

import pytest
import requests

from conftest import make_ambulance, make_examination, make_reservation
from reservation.gateway import GatewayError, ReservationGateway

API = "http://gateway.test/api"


class FakeResponse:
    def __init__(self, status_code=200, body=None, content=None):
        self.status_code = status_code
        self._body = body
        if content is None:
            content = b"" if body is None else b"{}"
        self.content = content

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._body is None:
            raise ValueError("no JSON")
        return self._body


@pytest.fixture
def recorder():
    return SimpleNamespace(requests=[], response=FakeResponse(200, []))


@pytest.fixture
def client(monkeypatch, recorder):
    gateway = ReservationGateway(API + "/", timeout=2.5)

    def fake_request(method, url, json=None, timeout=None):
        recorder.requests.append((method, url, json, timeout))
        if isinstance(recorder.response, Exception):
            raise recorder.response
        return recorder.response

    monkeypatch.setattr(gateway.session, "request", fake_request)
    return gateway


def test_list_ambulances(client, recorder):
    recorder.response = FakeResponse(200, [make_ambulance().to_api()])
    ambulances = client.list_ambulances()
    assert ambulances == [make_ambulance()]
    assert recorder.requests == [("GET", f"{API}/ambulances", None, 2.5)]


def test_search_payload(client, recorder):
    client.search_examinations("p1", "2025-03-11", "mri")
    method, url, payload, _ = recorder.requests[0]
    assert (method, url) == ("POST", f"{API}/patients/p1/examinations")
    assert payload == {"date": "2025-03-11", "examinationType": "mri"}


def test_create_reservation_payload(client, recorder):
    recorder.response = FakeResponse(200, make_reservation().to_api())
    reservation = client.create_reservation("p1", make_examination())
    _, url, payload, _ = recorder.requests[0]
    assert url == f"{API}/patients/p1/reservations"
    assert payload == {
        "ambulanceId": "a1",
        "examinationType": "mri",
        "start": "2025-03-11T09:00:00Z",
        "end": "2025-03-11T09:30:00Z",
        "patientId": "p1",
    }
    assert reservation == make_reservation()


def test_update_reservation_sends_whole_record(client, recorder):
    reservation = make_reservation(message="Fasting")
    recorder.response = FakeResponse(200, reservation.to_api())
    client.update_reservation("r1", reservation)
    method, url, payload, _ = recorder.requests[0]
    assert (method, url) == ("PUT", f"{API}/reservations/r1")
    assert payload["message"] == "Fasting"
    assert payload["patient"]["firstName"] == "Jana"


def test_delete_with_empty_body(client, recorder):
    recorder.response = FakeResponse(204)
    assert client.delete_reservation("r1") is None
    assert recorder.requests[0][:2] == ("DELETE", f"{API}/reservations/r1")


def test_http_error_status(client, recorder, caplog):
    recorder.response = FakeResponse(404, {"error": "missing"})
    with caplog.at_level(logging.WARNING), pytest.raises(GatewayError) as excinfo:
        client.get_patient_by_id("p9")
    assert excinfo.value.status_code == 404
    assert excinfo.value.operation == "getPatientById"
    assert "returned HTTP 404" in caplog.text


def test_transport_error(client, recorder):
    recorder.response = requests.ConnectionError("refused")
    with pytest.raises(GatewayError) as excinfo:
        client.list_patients()
    assert excinfo.value.status_code is None
    assert "refused" in str(excinfo.value)


def test_invalid_json(client, recorder):
    recorder.response = FakeResponse(200, None, content=b"<html>")
    with pytest.raises(GatewayError, match="not valid JSON"):
        client.list_patients()


def test_malformed_record(client, recorder):
    recorder.response = FakeResponse(200, [{"name": "no id"}])
    with pytest.raises(GatewayError, match="malformed Ambulance"):
        client.list_ambulances()


def test_list_expected(client, recorder):
    recorder.response = FakeResponse(200, {"items": []})
    with pytest.raises(GatewayError, match="expected a list"):
        client.get_reservations_for_patient("p1")
