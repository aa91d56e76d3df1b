"""
Smoke tests for the influx-client CLI.
"""

import json
from unittest.mock import MagicMock, patch

from typer.testing import CliRunner

from influx_client import NotFound, Result, StatementResult
from influx_client.cli import app

runner = CliRunner()


def mock_client(result):
    client = MagicMock()
    client.query.return_value = result
    client.write.return_value = result
    cls = MagicMock()
    cls.return_value.__enter__.return_value = client
    return cls, client


def write_ndjson(path, objs):
    path.write_text("\n".join(json.dumps(o) for o in objs) + "\n")
    return str(path)


POINT = {"measurement": "cpu", "tags": {"host": "a"}, "fields": {"load": 0.5}, "time": 1}


def test_query_prints_results():
    cls, client = mock_client(Result(results=[StatementResult(statement_id=0)]))
    with patch("influx_client.cli.InfluxDB", cls):
        out = runner.invoke(app, ["query", "SHOW DATABASES", "--host", "db1", "--db", "metrics"])

    assert out.exit_code == 0, out.output
    assert json.loads(out.stdout)["results"][0]["statement_id"] == 0
    cfg = cls.call_args.args[0]
    assert cfg.host == "db1" and cfg.database == "metrics"
    client.query.assert_called_once_with("SHOW DATABASES", options={})


def test_query_error_exits_nonzero():
    cls, _ = mock_client(Result(error=NotFound("database not found")))
    with patch("influx_client.cli.InfluxDB", cls):
        out = runner.invoke(app, ["query", "SELECT 1"])
    assert out.exit_code == 1


def test_write_chunks_points(tmp_path):
    path = write_ndjson(tmp_path / "points.ndjson", [POINT, [POINT, POINT]])
    cls, client = mock_client(Result())
    with patch("influx_client.cli.InfluxDB", cls):
        out = runner.invoke(app, ["write", path, "--precision", "second", "--chunk-size", "2"])

    assert out.exit_code == 0, out.output
    assert json.loads(out.stdout) == {"written": 3}
    sizes = [len(c.args[0]) for c in client.write.call_args_list]
    assert sizes == [3]  # first chunk check happens after a whole line
    assert client.write.call_args.args[1] == {"precision": "second"}


def test_write_async_dispatches_each_line(tmp_path):
    path = write_ndjson(tmp_path / "points.ndjson", [POINT, POINT, [POINT, POINT]])
    batches = []

    def fake_factory(*args, **kwargs):
        async def merge(batch):
            batches.append(list(batch))
            return Result()

        return merge

    with patch("influx_client.aclient.batch_processing_fun", fake_factory):
        out = runner.invoke(app, ["write-async", path, "--workers", "2", "--flush-ms", "50"])

    assert out.exit_code == 0, out.output
    stats = json.loads(out.stdout)
    assert stats["dispatched"] == 3
    assert stats["failed_batches"] == 0
    assert sum(len(b) for b in batches) == 3
