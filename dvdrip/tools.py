"""
dvdrip External Tool Runner
Runs makemkvcon, filebot, ffprobe and friends as argument lists
"""

import shutil
import subprocess
from dataclasses import dataclass, field
from typing import List, Optional

from . import activity


@dataclass
class ToolResult:
    """Captured result of one external tool invocation"""
    args: List[str] = field(default_factory=list)
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def first_line(self) -> str:
        """First stdout line, stripped"""
        for line in self.stdout.splitlines():
            return line.strip()
        return ""


def run_tool(args: List[str], timeout: Optional[float] = None,
             cwd: Optional[str] = None) -> ToolResult:
    """Run a tool and capture stdout, stderr and exit code.

    A missing binary is reported as exit code 127 instead of raising.
    """
    try:
        proc = subprocess.run(
            args,
            capture_output=True,
            text=True,
            errors="replace",
            timeout=timeout,
            cwd=cwd
        )
        return ToolResult(args=list(args), returncode=proc.returncode,
                          stdout=proc.stdout or "", stderr=proc.stderr or "")
    except FileNotFoundError:
        activity.log_warning(f"{args[0]} not found on PATH")
        return ToolResult(args=list(args), returncode=127, stderr=f"{args[0]}: command not found")
    except subprocess.TimeoutExpired:
        activity.log_warning(f"{args[0]} timed out after {timeout}s")
        return ToolResult(args=list(args), returncode=124, stderr="timed out")


def tool_available(name: str) -> bool:
    """Check whether a tool is on PATH"""
    return shutil.which(name) is not None
