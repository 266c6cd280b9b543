import sys
import time

import pytest

from services.compressor.domain.errors import ToolExecutionError, ToolTimeoutError
from services.compressor.infrastructure.process import run_tool


def test_run_tool_captures_output_and_exit_code():
    result = run_tool(
        [
            sys.executable,
            "-c",
            "import sys; print('audio'); sys.stderr.write('warn'); sys.exit(3)",
        ],
        timeout=30,
    )

    assert result.returncode == 3
    assert result.ok is False
    assert result.stdout.strip() == "audio"
    assert result.stderr == "warn"


def test_run_tool_does_not_interpret_shell_syntax():
    result = run_tool([sys.executable, "-c", "import sys; print(sys.argv[1])", "$(echo hi); ls"])

    assert result.ok
    assert result.stdout.strip() == "$(echo hi); ls"


def test_run_tool_kills_process_on_timeout():
    started = time.monotonic()

    with pytest.raises(ToolTimeoutError):
        run_tool([sys.executable, "-c", "import time; time.sleep(30)"], timeout=0.5)

    assert time.monotonic() - started < 15


def test_run_tool_reports_missing_binary():
    with pytest.raises(ToolExecutionError, match="could not start"):
        run_tool(["/nonexistent/definitely-not-a-tool"], timeout=5)
