"""Tests for point validation, line protocol encoding and the sinks."""

import json
import tempfile
import threading
from datetime import datetime, timezone
from pathlib import Path
from unittest import mock

import pytest
import requests

from influx_export.config import InfluxConfig, LocalSinkConfig
from influx_export.errors import BatchError, PointError, SinkWriteError
from influx_export.sink.base import Batch, BaseSink, BatchConfig
from influx_export.sink.http import InfluxHttpSink
from influx_export.sink.line_protocol import encode_batch, encode_point, to_timestamp
from influx_export.sink.local import LocalSink

NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
NOW_S = 1714564800


class NullSink(BaseSink):
    def write(self, batch: Batch) -> None:
        pass


# ---------------------------------------------------------------------------
# Batch and point construction
# ---------------------------------------------------------------------------

class TestConstruction:
    """Validation applied by BaseSink.new_batch / new_point."""

    def test_new_batch(self):
        batch = NullSink().new_batch(BatchConfig(database="metrics"))
        assert batch.database == "metrics"
        assert batch.precision == "s"
        assert len(batch) == 0

    def test_new_batch_empty_database(self):
        with pytest.raises(BatchError):
            NullSink().new_batch(BatchConfig(database=""))

    def test_new_batch_bad_precision(self):
        with pytest.raises(BatchError):
            NullSink().new_batch(BatchConfig(database="metrics", precision="weeks"))

    def test_new_point_copies_inputs(self):
        tags = {"host": "a"}
        fields = {"value": 1.0}
        point = NullSink().new_point("cpu", tags, fields, NOW)
        tags["host"] = "b"
        fields["value"] = 2.0
        assert point.tags == {"host": "a"}
        assert point.fields == {"value": 1.0}
        assert point.timestamp == NOW

    @pytest.mark.parametrize("name, tags, fields", [
        ("", {}, {"value": 1.0}),
        ("cpu", {}, {}),
        ("cpu\nload", {}, {"value": 1.0}),
        ("cpu", {"": "a"}, {"value": 1.0}),
        ("cpu", {"host": "a\nb"}, {"value": 1.0}),
        ("cpu", {}, {"": 1.0}),
        ("cpu", {}, {"value": "high"}),
        ("cpu", {}, {"value": float("inf")}),
        ("cpu", {}, {"value": float("nan")}),
    ])
    def test_new_point_rejects(self, name, tags, fields):
        with pytest.raises(PointError):
            NullSink().new_point(name, tags, fields, NOW)

    def test_new_point_accepts_int_and_bool(self):
        point = NullSink().new_point("cpu", {}, {"count": 3, "up": True}, NOW)
        assert point.fields == {"count": 3, "up": True}


# ---------------------------------------------------------------------------
# Line protocol
# ---------------------------------------------------------------------------

class TestLineProtocol:
    """Encoding of points into InfluxDB line protocol."""

    def _point(self, name="cpu", tags=None, fields=None, ts=NOW):
        return NullSink().new_point(name, tags or {}, fields or {"value": 1.0}, ts)

    def test_basic_line(self):
        line = encode_point(self._point(tags={"zone": "b", "host": "a"}, fields={"value": 42.0}))
        assert line == f"cpu,host=a,zone=b value=42.0 {NOW_S}"

    def test_integer_and_bool_fields(self):
        line = encode_point(self._point(fields={"count": 3, "up": False}))
        assert line == f"cpu count=3i,up=false {NOW_S}"

    def test_escaping(self):
        point = self._point(
            name="http requests,total",
            tags={"path key": "/a=b,c"},
            fields={"the value": 1.5},
        )
        line = encode_point(point)
        assert line == f"http\\ requests\\,total,path\\ key=/a\\=b\\,c the\\ value=1.5 {NOW_S}"

    def test_empty_tag_values_dropped(self):
        line = encode_point(self._point(tags={"host": "", "zone": "b"}))
        assert line == f"cpu,zone=b value=1.0 {NOW_S}"

    def test_precision(self):
        assert to_timestamp(NOW, "s") == NOW_S
        assert to_timestamp(NOW, "ms") == NOW_S * 1000
        assert to_timestamp(NOW, "ns") == NOW_S * 1_000_000_000
        assert to_timestamp(NOW, "h") == NOW_S // 3600

    def test_naive_timestamp_is_utc(self):
        assert to_timestamp(datetime(2024, 5, 1, 12, 0, 0)) == NOW_S

    def test_encode_batch(self):
        sink = NullSink()
        batch = sink.new_batch(BatchConfig(database="metrics", precision="ms"))
        batch.add_point(self._point(name="a"))
        batch.add_point(self._point(name="b"))
        assert encode_batch(batch) == (
            f"a value=1.0 {NOW_S * 1000}\nb value=1.0 {NOW_S * 1000}"
        )


# ---------------------------------------------------------------------------
# InfluxHttpSink
# ---------------------------------------------------------------------------

def _response(status: int, body: str = "") -> mock.Mock:
    resp = mock.Mock(spec=requests.Response)
    resp.status_code = status
    resp.text = body
    resp.json.side_effect = lambda: json.loads(body)
    return resp


class TestInfluxHttpSink:
    """HTTP writes against a mocked requests session."""

    def _sink(self, session, **kwargs):
        config = InfluxConfig(url="http://influx:8086/", **kwargs)
        return InfluxHttpSink(config, session=session)

    def _batch(self, sink, rp=""):
        batch = sink.new_batch(BatchConfig(database="metrics", retention_policy=rp))
        batch.add_point(sink.new_point("cpu", {"host": "a"}, {"value": 1.0}, NOW))
        return batch

    def test_write_posts_line_protocol(self):
        session = mock.Mock(spec=requests.Session)
        session.headers = {}
        session.post.return_value = _response(204)
        sink = self._sink(session, timeout_seconds=2.5)

        sink.write(self._batch(sink))

        session.post.assert_called_once_with(
            "http://influx:8086/write",
            params={"db": "metrics", "precision": "s"},
            data=f"cpu,host=a value=1.0 {NOW_S}".encode(),
            timeout=2.5,
        )

    def test_retention_policy_param(self):
        session = mock.Mock(spec=requests.Session)
        session.headers = {}
        session.post.return_value = _response(204)
        sink = self._sink(session)
        sink.write(self._batch(sink, rp="weekly"))
        assert session.post.call_args.kwargs["params"]["rp"] == "weekly"

    def test_headers_applied_to_session(self):
        session = mock.Mock(spec=requests.Session)
        session.headers = {}
        self._sink(session, headers={"X-Org": "team"})
        assert session.headers == {"X-Org": "team"}

    def test_empty_batch_skips_request(self):
        session = mock.Mock(spec=requests.Session)
        session.headers = {}
        sink = self._sink(session)
        sink.write(sink.new_batch(BatchConfig(database="metrics")))
        session.post.assert_not_called()

    def test_server_error(self):
        session = mock.Mock(spec=requests.Session)
        session.headers = {}
        session.post.return_value = _response(404, '{"error":"database not found: \\"metrics\\""}')
        sink = self._sink(session)
        with pytest.raises(SinkWriteError) as info:
            sink.write(self._batch(sink))
        assert info.value.status_code == 404
        assert 'database not found: "metrics"' in str(info.value)

    def test_non_json_error_body(self):
        session = mock.Mock(spec=requests.Session)
        session.headers = {}
        session.post.return_value = _response(502, "bad gateway\n")
        sink = self._sink(session)
        with pytest.raises(SinkWriteError, match="502: bad gateway"):
            sink.write(self._batch(sink))

    def test_transport_error(self):
        session = mock.Mock(spec=requests.Session)
        session.headers = {}
        session.post.side_effect = requests.ConnectionError("refused")
        sink = self._sink(session)
        with pytest.raises(SinkWriteError) as info:
            sink.write(self._batch(sink))
        assert info.value.status_code is None
        assert isinstance(info.value.__cause__, requests.ConnectionError)

    def test_shutdown_closes_session(self):
        session = mock.Mock(spec=requests.Session)
        session.headers = {}
        self._sink(session).shutdown()
        session.close.assert_called_once()


# ---------------------------------------------------------------------------
# LocalSink
# ---------------------------------------------------------------------------

def test_local_sink_writes_jsonl():
    with tempfile.TemporaryDirectory() as tmpdir:
        sink = LocalSink(LocalSinkConfig(output_dir=tmpdir))
        batch = sink.new_batch(BatchConfig(database="metrics"))
        batch.add_point(sink.new_point("cpu", {"host": "a"}, {"value": 1.5}, NOW))
        batch.add_point(sink.new_point("mem", {}, {"value": 2.0}, NOW))
        sink.write(batch)
        sink.shutdown()

        files = list(Path(tmpdir).glob("points-*.jsonl"))
        assert len(files) == 1
        with open(files[0]) as fh:
            records = [json.loads(line) for line in fh]
        assert len(records) == 2
        assert records[0] == {
            "database": "metrics",
            "name": "cpu",
            "tags": {"host": "a"},
            "fields": {"value": 1.5},
            "timestamp": NOW_S,
            "precision": "s",
        }
        assert records[1]["name"] == "mem"


def test_local_sink_appends_batches():
    with tempfile.TemporaryDirectory() as tmpdir:
        sink = LocalSink(LocalSinkConfig(output_dir=tmpdir))
        for _ in range(3):
            batch = sink.new_batch(BatchConfig(database="metrics"))
            batch.add_point(sink.new_point("cpu", {}, {"value": 1.0}, NOW))
            sink.write(batch)
        sink.shutdown()

        (path,) = Path(tmpdir).glob("points-*.jsonl")
        assert len(path.read_text().splitlines()) == 3


def test_local_sink_concurrent_writes():
    """Batches written from several threads land as whole, valid lines."""
    with tempfile.TemporaryDirectory() as tmpdir:
        sink = LocalSink(LocalSinkConfig(output_dir=tmpdir))

        def run(worker: int) -> None:
            for i in range(25):
                batch = sink.new_batch(BatchConfig(database="metrics"))
                for j in range(2):
                    batch.add_point(sink.new_point(
                        "cpu", {"worker": str(worker)}, {"value": float(i * 10 + j)}, NOW
                    ))
                sink.write(batch)

        threads = [threading.Thread(target=run, args=(w,)) for w in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        sink.shutdown()

        (path,) = Path(tmpdir).glob("points-*.jsonl")
        records = [json.loads(line) for line in path.read_text().splitlines()]
        assert len(records) == 200
        for worker in range(4):
            assert sum(r["tags"]["worker"] == str(worker) for r in records) == 50
