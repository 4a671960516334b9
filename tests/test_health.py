"""Unit tests for health classification and payload composition."""
import base64
import json
import re

import pytest
from dnslib import CLASS, QTYPE, DNSRecord
from doh_relay.health import (
    DEGRADED,
    ERROR,
    HEALTH_CHECK_DNS_QUERY,
    OK,
    HealthResult,
    WorkerHealthPayload,
    classify_latency,
    classify_upstream,
    edge_transport_failure,
    elapsed_ms,
    is_success_status,
    merge_edge_health,
    utc_now_iso,
)


def test_canned_query_is_example_com_a_in():
    """Test that the canned health query decodes to example.com A/IN."""
    padded = HEALTH_CHECK_DNS_QUERY + "=" * (-len(HEALTH_CHECK_DNS_QUERY) % 4)
    record = DNSRecord.parse(base64.urlsafe_b64decode(padded))

    assert str(record.q.qname) == "example.com."
    assert record.q.qtype == QTYPE.A
    assert record.q.qclass == CLASS.IN
    assert "=" not in HEALTH_CHECK_DNS_QUERY


@pytest.mark.parametrize('code,expected', [
    (101, OK), (200, OK), (204, OK), (301, OK), (399, OK),
    (400, DEGRADED), (404, DEGRADED), (500, DEGRADED), (503, DEGRADED),
])
def test_classify_upstream(code, expected):
    assert classify_upstream(code) == expected
    assert is_success_status(code) is (expected == OK)


@pytest.mark.parametrize('latencies,expected', [
    ((120,), OK),
    ((400,), OK),
    ((401,), DEGRADED),
    ((800,), DEGRADED),
    ((801,), ERROR),
    ((50, 450), DEGRADED),
    ((900, 10), ERROR),
    ((None, 10), DEGRADED),
    ((), DEGRADED),
])
def test_classify_latency(latencies, expected):
    """Test dashboard latency thresholds."""
    assert classify_latency(*latencies) == expected


def test_elapsed_ms_rounds_to_whole_milliseconds():
    assert elapsed_ms(1.0, 1.0504) == 50
    assert elapsed_ms(0.0, 0.02) == 20
    assert elapsed_ms(3.0, 3.0) == 0


def test_utc_now_iso_format():
    """Test ISO-8601 timestamp with milliseconds and Z suffix."""
    assert re.fullmatch(r"\d{4}-\d\d-\d\dT\d\d:\d\d:\d\d\.\d{3}Z", utc_now_iso())


class TestHealthResult:
    """Tests for the worker's HealthResult."""

    def test_reachable_ok(self):
        result = HealthResult.reachable("https://w.test", "https://up.test/dns-query", 200, 42)
        body = result.to_dict()

        assert result.http_status == 200
        assert body["status"] == OK
        assert body["worker_base"] == "https://w.test"
        assert body["doh_endpoint"] == "https://w.test/dns-query"
        assert body["upstream_url"] == "https://up.test/dns-query"
        assert body["upstream_status"] == 200
        assert body["latency_ms"] == 42
        assert body["upstream_latency_ms"] == 42
        assert body["message"] == "Upstream DoH reachable"

    def test_reachable_degraded(self):
        result = HealthResult.reachable("https://w.test", "https://up.test/dns-query", 404, 12)

        assert result.status == DEGRADED
        assert result.http_status == 502
        assert result.to_dict()["upstream_status"] == 404

    def test_failed(self):
        """Test that a transport failure nulls every numeric field."""
        result = HealthResult.failed("https://w.test", "https://up.test/dns-query", ConnectionError("refused"))
        body = result.to_dict()

        assert result.http_status == 502
        assert body["status"] == ERROR
        assert body["upstream_status"] is None
        assert body["latency_ms"] is None
        assert body["upstream_latency_ms"] is None
        assert body["message"] == "refused"

    def test_field_order(self):
        body = HealthResult.reachable("https://w.test", "https://up.test", 200, 1).to_dict()

        assert list(body) == [
            "status", "worker_base", "doh_endpoint", "upstream_url", "upstream_status",
            "latency_ms", "upstream_latency_ms", "message", "checked_at",
        ]


class TestWorkerHealthPayload:
    """Tests for parsing the worker's body at the edge."""

    def test_parse_object(self):
        body = json.dumps({"status": "ok", "message": "fine", "latency_ms": 50}).encode()
        payload = WorkerHealthPayload.parse(body)

        assert payload.status == "ok"
        assert payload.message == "fine"
        assert payload.fields == {"status": "ok", "message": "fine", "latency_ms": 50}

    @pytest.mark.parametrize('body', [b"", b"<html>bad gateway</html>", b"[1, 2]", b"null", b"\xff\xfe"])
    def test_parse_non_object_is_empty(self, body):
        payload = WorkerHealthPayload.parse(body)

        assert payload.status is None
        assert payload.message is None
        assert payload.fields == {}

    def test_parse_ignores_non_string_status(self):
        payload = WorkerHealthPayload.parse(b'{"status": 1, "message": null}')

        assert payload.status is None
        assert payload.message is None


class TestMergeEdgeHealth:
    """Tests for merge_edge_health."""

    def test_worker_fields_pass_through(self):
        worker = WorkerHealthPayload(status="degraded", message="upstream 404",
                                     fields={"upstream_latency_ms": 50, "upstream_status": 404})
        merged = merge_edge_health(worker, 20, worker_ok=False, checked_at="2026-01-01T00:00:00.000Z")

        assert merged["upstream_latency_ms"] == 50
        assert merged["upstream_status"] == 404
        assert merged["edge_latency_ms"] == 20
        assert merged["arvan_checked_at"] == "2026-01-01T00:00:00.000Z"
        assert merged["status"] == "degraded"
        assert merged["message"] == "upstream 404"

    def test_defaults_when_worker_ok(self):
        merged = merge_edge_health(WorkerHealthPayload(), 7, worker_ok=True)

        assert merged["status"] == OK
        assert merged["message"]
        assert merged["edge_latency_ms"] == 7

    def test_defaults_when_worker_failed(self):
        merged = merge_edge_health(WorkerHealthPayload(status=""), 7, worker_ok=False)

        assert merged["status"] == DEGRADED
        assert "unsuccessful" in merged["message"]

    def test_worker_key_order_kept(self):
        """Test that status and message stay where the worker put them."""
        body = json.dumps({"status": "degraded", "latency_ms": 50, "message": "slow"}).encode()
        merged = merge_edge_health(WorkerHealthPayload.parse(body), 9, worker_ok=True)

        assert list(merged) == ["status", "latency_ms", "message", "edge_latency_ms", "arvan_checked_at"]
        assert merged["status"] == "degraded"
        assert merged["message"] == "slow"

    def test_missing_status_appended_after_edge_fields(self):
        merged = merge_edge_health(WorkerHealthPayload.parse(b'{"latency_ms": 5}'), 9, worker_ok=True)

        assert list(merged) == ["latency_ms", "edge_latency_ms", "arvan_checked_at", "status", "message"]


def test_edge_transport_failure_payload():
    body = edge_transport_failure(ConnectionError("no route"))

    assert body["status"] == ERROR
    assert "no route" in body["message"]
    for key in ("edge_latency_ms", "latency_ms", "upstream_latency_ms", "upstream_status"):
        assert body[key] is None
    assert body["arvan_checked_at"].endswith("Z")
