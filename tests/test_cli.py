import io

import pytest

from logflux.__main__ import main  # type: ignore[import]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
  for var in ("LOGFLUX_UNIX_SOCKET", "LOGFLUX_HOST", "LOGFLUX_PORT", "LOGFLUX_CONFIG", "LOGFLUX_SHARED_SECRET"):
    monkeypatch.delenv(var, raising=False)


def _exit_code(argv, stdin=None):
  with pytest.raises(SystemExit) as excinfo:
    main(argv, stdin=stdin)
  return excinfo.value.code


def test_usage_without_command(capsys):
  assert _exit_code([]) == 1
  assert "Usage: python -m logflux" in capsys.readouterr().err


def test_send_message_with_labels(unix_collector, capsys):
  code = _exit_code([
    "send",
    "--unix-socket", unix_collector.path,
    "--source", "cli-test",
    "--level", "3",
    "--label", "env=test",
    "deploy finished",
  ])

  assert code == 0
  [line] = unix_collector.wait_for(1)
  assert line["message"] == "deploy finished"
  assert line["source"] == "cli-test"
  assert line["level"] == 3
  assert line["labels"] == {"env": "test"}
  assert "Sent 1 entry" in capsys.readouterr().out


def test_send_reads_stdin_lines(tcp_collector):
  stdin = io.StringIO("first\n\nsecond\n")

  code = _exit_code(
    ["send", "--host", tcp_collector.host, "--port", str(tcp_collector.port), "--shared-secret", "s"],
    stdin=stdin,
  )

  assert code == 0
  lines = tcp_collector.wait_for(2)
  assert [line["message"] for line in lines] == ["first", "second"]
  assert all(line["auth"] == "s" for line in lines)


def test_send_uses_environment(unix_collector, monkeypatch):
  monkeypatch.setenv("LOGFLUX_UNIX_SOCKET", unix_collector.path)

  assert _exit_code(["send", "from env"]) == 0
  assert unix_collector.wait_for(1)[0]["message"] == "from env"


def test_configuration_error_exit_code(capsys):
  assert _exit_code(["send", "--host", "localhost", "hello"]) == 1
  assert "TCP host requires port" in capsys.readouterr().err


def test_bad_label_exit_code(unix_collector, capsys):
  assert _exit_code(["send", "--unix-socket", unix_collector.path, "--label", "novalue", "x"]) == 1
  assert "expected KEY=VALUE" in capsys.readouterr().err


def test_delivery_failure_exit_code(closed_tcp_port, capsys):
  code = _exit_code([
    "send",
    "--host", "127.0.0.1",
    "--port", str(closed_tcp_port),
    "--max-retries", "0",
    "--retry-delay", "0",
    "hello",
  ])

  assert code == 2
  assert "Connection refused" in capsys.readouterr().err
