from __future__ import annotations

import logging
import os
import subprocess
import time

from vcs_core.errors import CommandExecutionError
from vcs_core.logging import redact_log_text

from vcs_hub.commands import CommandSpec

LOGGER = logging.getLogger("vcs_hub.commands")


def run_command_spec(
    spec: CommandSpec,
    *,
    capture: bool = True,
    check: bool = True,
) -> subprocess.CompletedProcess[str]:
    resolved_env: dict[str, str] | None = None
    if spec.env:
        resolved_env = dict(os.environ)
        for key, value in spec.env.items():
            resolved_env[str(key)] = str(value)
    started = time.monotonic()
    result = subprocess.run(
        spec.resolved_argv(),
        cwd=str(spec.cwd) if spec.cwd else None,
        check=False,
        text=True,
        capture_output=capture,
        env=resolved_env,
    )
    duration_ms = int((time.monotonic() - started) * 1000)
    LOGGER.info(
        "Ran %s (exit %s).",
        spec.display_command(),
        result.returncode,
        extra={
            "component": "command_runner",
            "operation": "run",
            "result": "ok" if result.returncode == 0 else "failed",
            "duration_ms": duration_ms,
        },
    )
    if check and result.returncode != 0:
        output = redact_log_text(spec.mask_output(((result.stdout or "") + (result.stderr or "")).strip()))
        raise CommandExecutionError(
            f"Command failed ({spec.display_command()}): {output}",
            returncode=result.returncode,
            output=output,
        )
    return result


__all__ = ["run_command_spec"]
