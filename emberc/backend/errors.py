"""
Error handling for the build driver.

Author: xwest
"""

from typing import List, Optional

from ..lexer.errors import Diagnostic


class ToolchainError(Exception):
    """
    Exception raised when a build step fails.

    Stops the remaining steps; files already written are left in place.
    """

    def __init__(
        self,
        message: str,
        step: str,
        code: Optional[str] = None,
        help_text: Optional[str] = None,
        returncode: Optional[int] = None,
        stderr: str = ""
    ):
        super().__init__(message)
        self.diagnostic = Diagnostic(
            message=message,
            location=None,
            severity="error",
            code=code,
            help_text=help_text,
        )
        self.step = step
        self.returncode = returncode
        self.stderr = stderr

    @property
    def code(self) -> Optional[str]:
        return self.diagnostic.code

    def __str__(self) -> str:
        result = str(self.diagnostic)
        if self.stderr:
            result += "  tool output:\n"
            for line in self.stderr.rstrip().splitlines():
                result += f"    {line}\n"
        return result


BUILD_ERROR_CODES = {
    "B001": "Malformed IR module",
    "B002": "Toolchain step failed",
    "B003": "Toolchain executable not found",
    "B004": "Cannot write output file",
}


def create_malformed_module_error(reason: str) -> ToolchainError:
    return ToolchainError(
        message=f"Generated IR failed verification: {reason.strip()}",
        step="verify",
        code="B001",
        help_text="This is a compiler bug; please report it with the source file."
    )


def create_step_failed_error(step: str, cmd: List[str], returncode: int, stderr: str) -> ToolchainError:
    return ToolchainError(
        message=f"{step} failed with exit status {returncode}: {' '.join(cmd)}",
        step=step,
        code="B002",
        returncode=returncode,
        stderr=stderr
    )


def create_tool_not_found_error(tool: str, step: str, reason: OSError) -> ToolchainError:
    return ToolchainError(
        message=f"Cannot run {step} tool '{tool}': {reason.strerror or reason}",
        step=step,
        code="B003",
        help_text="Install LLVM and a C compiler, or point --llc/--cc "
                  "(or EMBER_LLC/EMBER_CC) at them."
    )


def create_write_failed_error(path: str, reason: OSError) -> ToolchainError:
    return ToolchainError(
        message=f"Cannot write '{path}': {reason.strerror or reason}",
        step="write",
        code="B004",
    )
