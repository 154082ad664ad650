"""Worker entry point: ``<python> worker/__main__.py <task> [args...]``

The access token arrives as the first line of stdin. All results are reported
as JSON lines on stdout.
"""

import sys
from pathlib import Path

if not __package__:
    # Run by path: make the project root importable
    sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from worker import ipc  # noqa: E402
from worker.graph import GraphClient, GraphError  # noqa: E402
from worker.tasks import TASKS  # noqa: E402


def main(argv=None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv:
        ipc.error("No task specified")

    task_name, task_args = argv[0], argv[1:]
    func = TASKS.get(task_name)
    if func is None:
        ipc.error(f"Unknown command: {task_name}")

    token = sys.stdin.readline().strip()
    if not token:
        ipc.error("No access token received on stdin")

    try:
        with GraphClient(token) as graph:
            func(graph, task_args)
    except GraphError as e:
        ipc.error(str(e))
    except Exception as e:
        # Every other failure is reported over IPC too
        ipc.error(str(e) or type(e).__name__)
    return 0


if __name__ == "__main__":
    sys.exit(main())
