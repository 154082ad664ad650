"""Worker subprocess lifecycle

The worker is started as ``<runtime> <entry_point> <task> [args...]``. The
access token is written to its stdin followed by a newline, then stdin is
closed. Its stdout carries the JSON-lines protocol from runner.protocol and
its stderr is logged as diagnostics.
"""

import logging
import subprocess
import sys
import threading
from pathlib import Path
from typing import Callable, IO, Iterator, List, Optional, Sequence, Union

import settings
from errors import (
    WorkerExitError,
    WorkerReportedError,
    WorkerSecretHandoffError,
    WorkerSpawnError,
)
from utils.paths import resolve_project_root

from .channel import ErrorEvent, ProgressChannel, ProgressEvent, ResultEvent
from .protocol import (
    ErrorMessage,
    ProgressMessage,
    TaskOutput,
    decode_message,
    digest_success,
    format_diagnostic,
    format_progress,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def resolve_worker_command(
    task_name: str,
    args: Sequence[str] = (),
    runtime: Optional[str] = None,
    entry_point: Optional[PathLike] = None,
    cwd: Optional[PathLike] = None,
) -> List[str]:
    """
    Build the worker argv.

    Args:
        task_name: Task identifier, e.g. "iam:offboard"
        args: Extra task arguments
        runtime: Interpreter (default: WORKER_RUNTIME setting, else sys.executable)
        entry_point: Worker script, relative paths resolve against the project root
        cwd: Directory used to locate the project root (default: current directory)
    """
    runtime = runtime or settings.WORKER_RUNTIME or sys.executable
    entry = Path(entry_point or settings.WORKER_ENTRY)
    if not entry.is_absolute():
        entry = resolve_project_root(cwd) / entry
    return [runtime, str(entry), task_name, *args]


class WorkerRun:
    """
    One worker process and the events it produces.

    Usage:
        with WorkerRun("iam:test", [], token) as run:
            for event in run.events():
                print(event.text)
            output = run.output
    """

    def __init__(
        self,
        task_name: str,
        args: Sequence[str],
        access_token: str,
        *,
        runtime: Optional[str] = None,
        entry_point: Optional[PathLike] = None,
        cwd: Optional[PathLike] = None,
        buffer_size: Optional[int] = None,
    ):
        self.task_name = task_name
        self.command = resolve_worker_command(task_name, args, runtime, entry_point, cwd)
        self._access_token = access_token
        self._channel = ProgressChannel(buffer_size or settings.PROGRESS_BUFFER)
        self._process: Optional[subprocess.Popen] = None
        self._threads: List[threading.Thread] = []
        self._output: Optional[TaskOutput] = None
        self._finished = False

    def __enter__(self) -> "WorkerRun":
        if self._process is None:
            self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.kill()

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid if self._process else None

    @property
    def output(self) -> Optional[TaskOutput]:
        """Result of a run whose events() completed without error"""
        return self._output

    def start(self) -> "WorkerRun":
        """Spawn the worker and hand over the access token.

        Raises:
            WorkerSpawnError: the runtime or entry point could not be started
            WorkerSecretHandoffError: the token could not be written to stdin
        """
        entry = Path(self.command[1])
        if not entry.exists():
            raise WorkerSpawnError(f"Worker entry point not found: {entry}")

        logger.info(f"Spawning worker: {self.command[0]} {entry} {self.task_name} ({len(self.command) - 3} args)")
        try:
            self._process = subprocess.Popen(
                self.command,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            raise WorkerSpawnError(f"Failed to start worker process '{self.command[0]}': {e}") from e

        self._hand_off_token()

        self._threads = [
            threading.Thread(target=self._read_stdout, name=f"worker-stdout-{self.pid}", daemon=True),
            threading.Thread(target=self._drain_stderr, name=f"worker-stderr-{self.pid}", daemon=True),
        ]
        for thread in self._threads:
            thread.start()
        return self

    def _hand_off_token(self) -> None:
        try:
            self._process.stdin.write(self._access_token.encode("utf-8") + b"\n")
            self._process.stdin.close()
        except OSError as e:
            self.kill()
            raise WorkerSecretHandoffError(f"Failed to write token to worker stdin: {e}") from e
        logger.debug(f"Token handed to worker {self.pid} (length: {len(self._access_token)})")

    def _read_stdout(self) -> None:
        output: Optional[TaskOutput] = None
        try:
            for raw in self._process.stdout:
                line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
                if not line.strip():
                    continue

                message = decode_message(line)
                if message is None:
                    self._channel.put(ProgressEvent(format_diagnostic(line)))
                elif isinstance(message, ProgressMessage):
                    self._channel.put(ProgressEvent(format_progress(message)))
                elif isinstance(message, ErrorMessage):
                    self._channel.put(ErrorEvent(message.message))
                    return
                else:
                    output = digest_success(message.data)
        except (OSError, ValueError) as e:
            # stdout closed underneath us by kill()
            logger.debug(f"Worker stdout reader stopped: {e}")
        self._channel.put(ResultEvent(output))

    def _drain_stderr(self) -> None:
        stream: IO[bytes] = self._process.stderr
        try:
            for raw in stream:
                line = raw.decode("utf-8", errors="replace").rstrip()
                if line:
                    logger.debug(f"[WORKER] {line}")
        except (OSError, ValueError) as e:
            logger.debug(f"Worker stderr reader stopped: {e}")

    def events(self) -> Iterator[ProgressEvent]:
        """
        Yield progress events until the worker finishes.

        On normal completion the result is available as ``output``.

        Raises:
            WorkerReportedError: the worker emitted an error message
            WorkerExitError: the worker exited non-zero (even after a success message)
        """
        if self._process is None:
            raise WorkerSpawnError("Worker has not been started")
        if self._finished:
            return

        while True:
            event = self._channel.get()
            if isinstance(event, ProgressEvent):
                yield event
                continue

            self._finished = True
            if isinstance(event, ErrorEvent):
                logger.error(f"Worker reported error for task {self.task_name}")
                self.kill()
                raise WorkerReportedError(event.message)

            code = self._process.wait()
            self._join_threads()
            if code != 0:
                logger.error(f"Worker for task {self.task_name} exited with code {code}")
                raise WorkerExitError(code)

            logger.info(f"Worker for task {self.task_name} completed")
            self._output = event.output if event.output is not None else TaskOutput()
            return

    def result(self) -> TaskOutput:
        """Consume the remaining events and return the task output"""
        for _ in self.events():
            pass
        return self._output

    def kill(self) -> None:
        """Terminate the worker if it is still running"""
        if self._process is None:
            return
        if self._process.poll() is None:
            logger.debug(f"Killing worker {self.pid}")
            self._process.kill()
        self._process.wait()
        self._join_threads()
        for stream in (self._process.stdout, self._process.stderr):
            if stream is not None:
                stream.close()

    def _join_threads(self) -> None:
        current = threading.current_thread()
        for thread in self._threads:
            if thread is not current:
                thread.join(timeout=5)


def run_task(
    task_name: str,
    args: Sequence[str],
    access_token: str,
    on_progress: Optional[Callable[[str], None]] = None,
    *,
    runtime: Optional[str] = None,
    entry_point: Optional[PathLike] = None,
    cwd: Optional[PathLike] = None,
) -> TaskOutput:
    """
    Run a task in a worker process and return its digested output.

    Args:
        task_name: Task identifier passed as the worker's first argument
        args: Extra arguments passed through verbatim
        access_token: Bearer token handed over on stdin, never on argv or env
        on_progress: Receives the spawn notice and each progress/diagnostic line
        runtime: Worker interpreter override
        entry_point: Worker script override
        cwd: Directory used to locate the project root

    Raises:
        RunnerError: spawn, handoff, worker-reported or exit-code failure
    """
    notify = on_progress or (lambda _text: None)
    notify(f"🚀 Spawning worker for task: {task_name}")

    with WorkerRun(
        task_name,
        args,
        access_token,
        runtime=runtime,
        entry_point=entry_point,
        cwd=cwd,
    ) as run:
        for event in run.events():
            notify(event.text)
        return run.output
