import os
import shlex
from typing import Callable, List, Union

from fabric.core.service import Service, Signal
from gi.repository import Gio, GLib
from loguru import logger

from utils.constants import SHELL_BACKENDS


class ShellService(Service):
    """Runs commands with elevated rights through root, `sudo -n` or `pkexec`."""

    @Signal
    def command_finished(self, command: str, success: bool) -> None: ...

    @Signal
    def access_resolved(self, granted: bool) -> None: ...

    def __init__(self, backend: str = "auto", **kwargs):
        super().__init__(**kwargs)
        if backend not in SHELL_BACKENDS:
            logger.warning(f"ShellSvc: Unknown backend '{backend}', using 'auto'.")
            backend = "auto"
        self.backend = backend
        self._wrapper: Union[List[str], None] = None
        self._resolving = False
        self.refresh_access()

    @property
    def resolving(self) -> bool:
        return self._resolving

    @property
    def candidates(self) -> List[str]:
        return ["root", "sudo", "pkexec"] if self.backend == "auto" else [self.backend]

    def refresh_access(self) -> None:
        """Re-resolve the privilege wrapper without blocking the main loop."""
        if self._resolving:
            return
        self._resolving = True
        self._try_candidates(self.candidates)

    def _try_candidates(self, candidates: List[str]) -> None:
        for index, candidate in enumerate(candidates):
            if candidate == "root" and os.geteuid() == 0:
                self._resolved([])
                return
            if candidate == "sudo" and GLib.find_program_in_path("sudo"):
                remaining = candidates[index + 1:]
                self._check_async(
                    ["sudo", "-n", "true"],
                    lambda ok: self._resolved(["sudo", "-n"]) if ok else self._try_candidates(remaining),
                )
                return
            if candidate == "pkexec" and GLib.find_program_in_path("pkexec"):
                self._resolved(["pkexec"])
                return
        self._resolved(None)

    def _check_async(self, argv: List[str], on_done: Callable[[bool], None]) -> None:
        try:
            proc = Gio.Subprocess.new(
                argv,
                Gio.SubprocessFlags.STDOUT_SILENCE | Gio.SubprocessFlags.STDERR_SILENCE,
            )
            proc.wait_check_async(None, self._on_check_finish, (argv, on_done))
        except GLib.Error as e:
            logger.debug(f"ShellSvc: Check {argv} failed: {e}")
            on_done(False)

    def _on_check_finish(self, proc: Gio.Subprocess, result: Gio.AsyncResult, user_data) -> None:
        argv, on_done = user_data
        try:
            ok = proc.wait_check_finish(result)
        except GLib.Error as e:
            logger.debug(f"ShellSvc: Check {argv} failed: {e}")
            ok = False
        on_done(ok)

    def _resolved(self, wrapper: Union[List[str], None]) -> None:
        self._resolving = False
        self._wrapper = wrapper
        self.emit("access-resolved", wrapper is not None)
        if wrapper is None:
            logger.info(f"ShellSvc: No privileged access (backend '{self.backend}').")
        else:
            logger.debug(f"ShellSvc: Privileged access via {wrapper or ['root']}.")

    def has_access(self) -> bool:
        if self._wrapper is None:
            self.refresh_access()
        return self._wrapper is not None

    def execute(self, command: str) -> None:
        if self._wrapper is None:
            logger.error(f"ShellSvc: Cannot run '{command}' without privileged access.")
            self.emit("command-finished", command, False)
            return

        try:
            argv = self._wrapper + shlex.split(command)
        except ValueError as e:
            logger.error(f"ShellSvc: Malformed command '{command}': {e}")
            self.emit("command-finished", command, False)
            return

        logger.info(f"ShellSvc: Executing: {shlex.join(argv)}")
        try:
            proc = Gio.Subprocess.new(
                argv, Gio.SubprocessFlags.STDOUT_PIPE | Gio.SubprocessFlags.STDERR_PIPE
            )
            proc.communicate_async(None, None, self._on_command_finish, command)
        except GLib.Error as e:
            logger.error(f"ShellSvc: Failed to spawn '{command}': {e}")
            self.emit("command-finished", command, False)

    def _on_command_finish(
        self, proc: Gio.Subprocess, result: Gio.AsyncResult, command: str
    ) -> None:
        success = False
        try:
            _, stdout_bytes, stderr_bytes = proc.communicate_finish(result)
            stdout = stdout_bytes.get_data().decode(errors="replace").strip() if stdout_bytes else ""
            stderr = stderr_bytes.get_data().decode(errors="replace").strip() if stderr_bytes else ""
            success = proc.get_successful()
            if success:
                logger.info(f"ShellSvc: '{command}' successful. STDOUT='{stdout}'")
            else:
                logger.error(
                    f"ShellSvc: '{command}' failed with status {proc.get_exit_status()}. STDOUT='{stdout}', STDERR='{stderr}'"
                )
        except GLib.Error as e:
            logger.error(f"ShellSvc: GLib error processing result for '{command}': {e}")
        if not success:
            self.refresh_access()
        self.emit("command-finished", command, success)
