"""Tests for the worker process adapter, using real Python subprocesses."""
import json
import sys
import textwrap
from pathlib import Path

import pytest

from errors import WorkerExitError, WorkerReportedError, WorkerSpawnError
from runner import TaskOutput, WorkerRun, resolve_worker_command, run_task

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def write_worker(tmp_path, body: str) -> Path:
    script = tmp_path / "fake_worker.py"
    script.write_text(
        "import json, sys, time\n"
        "def emit(obj):\n"
        "    print(json.dumps(obj), flush=True)\n"
        "token = sys.stdin.readline()\n"
        + textwrap.dedent(body)
    )
    return script


def run(script, task="demo", args=(), token="secret-token"):
    progress = []
    output = run_task(task, list(args), token, progress.append, entry_point=script)
    return output, progress


class TestResolveWorkerCommand:
    def test_defaults(self, tmp_path):
        command = resolve_worker_command("iam:test", ["--x"], cwd=tmp_path)
        assert command == [sys.executable, str(tmp_path / "worker" / "__main__.py"), "iam:test", "--x"]

    def test_from_cli_directory(self, tmp_path):
        cli_dir = tmp_path / "cli"
        cli_dir.mkdir()
        command = resolve_worker_command("t", cwd=cli_dir)
        assert command[1] == str(tmp_path / "worker" / "__main__.py")

    def test_overrides(self, tmp_path):
        command = resolve_worker_command("t", runtime="/usr/bin/env", entry_point=tmp_path / "w.py")
        assert command[:2] == ["/usr/bin/env", str(tmp_path / "w.py")]


class TestRunTask:
    def test_table_result(self, tmp_path):
        script = write_worker(tmp_path, """
            emit({"type": "progress", "message": "Working", "percent": 50})
            emit({"type": "success", "data": {"table": {"headers": ["A", "B"], "rows": [["1", "2"]]}}})
        """)

        output, progress = run(script)

        assert output == TaskOutput(headers=["A", "B"], rows=[["1", "2"]])
        assert progress == ["🚀 Spawning worker for task: demo", "⏳ [50%] Working"]

    def test_token_arrives_on_stdin_only(self, tmp_path):
        script = write_worker(tmp_path, """
            emit({"type": "success", "data": {
                "token": token,
                "argv": sys.argv[1:],
            }})
        """)

        output, _ = run(script, task="iam:test", args=["--user", "a@b.c"], token="tok-123")

        assert output.raw["token"] == "tok-123\n"
        assert output.raw["argv"] == ["iam:test", "--user", "a@b.c"]
        assert "tok-123" not in json.dumps(output.raw["argv"])

    def test_error_short_circuits(self, tmp_path):
        script = write_worker(tmp_path, """
            emit({"type": "progress", "message": "before", "percent": 10})
            emit({"type": "error", "message": "boom"})
            emit({"type": "progress", "message": "after", "percent": 90})
            emit({"type": "success", "data": {"ignored": True}})
            time.sleep(30)
        """)
        progress = []

        with pytest.raises(WorkerReportedError) as exc_info:
            run_task("demo", [], "tok", progress.append, entry_point=script)

        assert str(exc_info.value) == "boom"
        assert exc_info.value.message == "boom"
        assert "⏳ [10%] before" in progress
        assert not any("after" in line for line in progress)

    def test_nonzero_exit_after_success(self, tmp_path):
        script = write_worker(tmp_path, """
            emit({"type": "success", "data": {"table": {"headers": ["A"], "rows": [["1"]]}}})
            sys.exit(3)
        """)

        with pytest.raises(WorkerExitError) as exc_info:
            run(script)

        assert exc_info.value.code == 3
        assert str(exc_info.value) == "Worker failed with exit code: 3"

    def test_plain_text_forwarded(self, tmp_path):
        script = write_worker(tmp_path, """
            print("hello from worker", flush=True)
            print("{broken json", flush=True)
            print("", flush=True)
            print("   ", flush=True)
            emit({"type": "success", "data": "ok"})
        """)

        output, progress = run(script)

        assert progress[1:] == ["📝 hello from worker", "📝 {broken json"]
        assert output.raw == "ok"

    def test_last_success_wins(self, tmp_path):
        script = write_worker(tmp_path, """
            emit({"type": "success", "data": {"first": True}})
            emit({"type": "success", "data": {"table": {"headers": ["A"], "rows": [["x"]]}}})
        """)

        output, _ = run(script)

        assert output.headers == ["A"]
        assert output.raw is None

    def test_null_success_is_kept(self, tmp_path):
        script = write_worker(tmp_path, """
            emit({"type": "success", "data": None})
        """)

        output, _ = run(script)

        assert output.raw_json == "null"

    def test_no_success_gives_empty_output(self, tmp_path):
        script = write_worker(tmp_path, """
            emit({"type": "progress", "message": "nothing to do"})
        """)

        output, progress = run(script)

        assert output == TaskOutput()
        assert progress[-1] == "⏳ [00%] nothing to do"

    def test_stderr_is_not_protocol(self, tmp_path):
        script = write_worker(tmp_path, """
            print("[DEBUG] noisy", file=sys.stderr, flush=True)
            emit({"type": "success", "data": 1})
        """)

        output, progress = run(script)

        assert output.raw == 1
        assert not any("noisy" in line for line in progress)

    def test_missing_runtime(self, tmp_path):
        script = write_worker(tmp_path, "")
        with pytest.raises(WorkerSpawnError):
            run_task("demo", [], "tok", entry_point=script, runtime=str(tmp_path / "no-such-runtime"))

    def test_missing_entry_point(self, tmp_path):
        with pytest.raises(WorkerSpawnError):
            run_task("demo", [], "tok", entry_point=tmp_path / "missing.py")


class TestWorkerRun:
    def test_events_then_output(self, tmp_path):
        script = write_worker(tmp_path, """
            for i in range(3):
                emit({"type": "progress", "message": f"step {i}", "percent": i * 10})
            emit({"type": "success", "data": {"table": {"headers": ["N"], "rows": [["3"]]}}})
        """)

        with WorkerRun("demo", [], "tok", entry_point=script) as worker:
            texts = [event.text for event in worker.events()]
            assert worker.output.rows == [["3"]]

        assert texts == ["⏳ [00%] step 0", "⏳ [10%] step 1", "⏳ [20%] step 2"]

    def test_result(self, tmp_path):
        script = write_worker(tmp_path, """
            emit({"type": "success", "data": {"done": True}})
        """)

        with WorkerRun("demo", [], "tok", entry_point=script) as worker:
            assert worker.result().raw == {"done": True}


class TestReferenceWorker:
    """The bundled worker entry point, without network access"""

    ENTRY = PROJECT_ROOT / "worker" / "__main__.py"

    def test_unknown_task(self):
        with pytest.raises(WorkerReportedError) as exc_info:
            run_task("nope:nothing", [], "tok", entry_point=self.ENTRY)
        assert str(exc_info.value) == "Unknown command: nope:nothing"

    def test_missing_token(self):
        with pytest.raises(WorkerReportedError) as exc_info:
            run_task("iam:test", [], "", entry_point=self.ENTRY)
        assert "No access token" in str(exc_info.value)

    def test_offboard_requires_user(self):
        with pytest.raises(WorkerReportedError) as exc_info:
            run_task("iam:offboard", [], "tok", entry_point=self.ENTRY)
        assert str(exc_info.value) == "Missing required argument: --user <email>"
