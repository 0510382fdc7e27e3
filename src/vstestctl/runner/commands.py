#
# src/vstestctl/runner/commands.py
#
"""
Line grammar understood by the runner script: a verb followed by space-separated arguments.
"""
from collections.abc import Iterable

DISCOVER = "discover"
RUN_TESTS = "run-tests"
DEBUG_TESTS = "debug-tests"


def _line(verb: str, *args: str, rest: Iterable[str] = ()) -> str:
    """Joins the parts with single spaces; a part that is empty or holds whitespace raises ValueError."""
    parts = [verb, *args, *rest]
    for part in parts:
        if not part or any(ch.isspace() for ch in part):
            raise ValueError(f"Invalid runner command argument: {part!r}")
    return " ".join(parts)


def discover_command(output_file: str, signal_file: str, dll_files: Iterable[str]) -> str:
    return _line(DISCOVER, output_file, signal_file, rest=dll_files)


def run_tests_command(stream_path: str, output_path: str, process_output_path: str, ids: Iterable[str]) -> str:
    return _line(RUN_TESTS, stream_path, output_path, process_output_path, rest=ids)


def debug_tests_command(
    pid_file: str,
    attached_path: str,
    stream_path: str,
    output_path: str,
    process_output_path: str,
    ids: Iterable[str],
) -> str:
    return _line(DEBUG_TESTS, pid_file, attached_path, stream_path, output_path, process_output_path, rest=ids)
