from __future__ import annotations

import json

import pytest

from src.academia_console.academia_console.core.exceptions import TransportError
from src.academia_console.academia_console.notifications.signalr import (
    RECORD_SEPARATOR,
    SignalRSseTransport,
    hub_url_for,
    iter_sse_data,
    split_records,
)


@pytest.mark.parametrize(
    "base, expected",
    [
        ("http://localhost:5000/api", "http://localhost:5000/hubs/notificaciones"),
        ("http://localhost:5000/api/", "http://localhost:5000/hubs/notificaciones"),
        ("https://academia.test", "https://academia.test/hubs/notificaciones"),
    ],
)
def test_hub_url_is_served_next_to_the_api(base, expected):
    assert hub_url_for(base, "/hubs/notificaciones") == expected


def test_sse_lines_are_grouped_per_event():
    lines = [":keepalive", "data: {\"type\":6}\x1e", "", "data: part-1", "data: part-2", "", "data: tail"]

    assert list(iter_sse_data(lines)) == ['{"type":6}\x1e', "part-1\npart-2", "tail"]


def test_split_records_reads_every_message():
    payload = json.dumps({}) + RECORD_SEPARATOR + json.dumps({"type": 6}) + RECORD_SEPARATOR

    assert split_records(payload) == [{}, {"type": 6}]


def test_invocations_are_delivered_and_close_stops_reading():
    transport = SignalRSseTransport("http://hub.test/hubs/notificaciones")
    received = []
    invocation = {
        "type": 1,
        "target": "Notificacion",
        "arguments": [{"tipo": "nueva_asistencia", "datos": {"idAsist": 3}}],
    }
    data = json.dumps(invocation) + RECORD_SEPARATOR + json.dumps({"type": 6}) + RECORD_SEPARATOR

    assert transport._handle_payload(data, received.append) is False
    assert [n.type for n in received] == ["nueva_asistencia"]
    assert transport._handle_payload(json.dumps({"type": 7}) + RECORD_SEPARATOR, received.append) is True


def test_rejected_handshake_raises():
    transport = SignalRSseTransport("http://hub.test/hubs/notificaciones")

    with pytest.raises(TransportError):
        transport._handle_payload(json.dumps({"error": "bad protocol"}) + RECORD_SEPARATOR, lambda n: None)
