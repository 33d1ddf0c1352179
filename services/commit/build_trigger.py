"""Run the downstream site build after every commit and report its output."""

from __future__ import annotations

import asyncio
import logging
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Set

from services import messages
from services.commit.gate import CommitTicket
from services.transport import ChatTransport

LOGGER = logging.getLogger(__name__)


@dataclass
class BuildResult:
    """Outcome of one build run.

    Attributes:
        exit_code: Process exit status, or None if the process never started.
        stdout: Captured standard output (decoded, replacement on bad bytes).
        stderr: Captured standard error.
        error: Description of a spawn failure.
    """

    exit_code: Optional[int]
    stdout: str = ""
    stderr: str = ""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class BuildTrigger:
    """Invoke the configured build command and release the commit gate.

    The command string is split with `shlex` and executed directly, without
    a shell, in `workdir`. Builds run as background tasks so the committing
    session can return to idle while the build is still going.
    """

    def __init__(self, command: Optional[str], workdir: Optional[Path | str], transport: ChatTransport) -> None:
        self.command = command
        self.workdir = Path(workdir) if workdir else None
        self.transport = transport
        self._tasks: Set[asyncio.Task] = set()

    @property
    def configured(self) -> bool:
        return bool(self.command) and self.workdir is not None

    def start(self, ticket: CommitTicket, chat_id: int, reply_to: Optional[int] = None) -> Optional[asyncio.Task]:
        """Kick off the build; the ticket is released when it completes.

        Without a configured command or working directory the ticket is
        released right away and None is returned.
        """
        if not self.configured:
            ticket.release()
            return None
        task = asyncio.create_task(self._run_and_report(ticket, chat_id, reply_to))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_all(self) -> None:
        """Wait for every build that is still running."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def run_command(self) -> BuildResult:
        """Execute the build once and capture its output. Never raises on failure."""
        try:
            argv = shlex.split(self.command or "")
            if not argv:
                raise ValueError("Build command is empty.")
            process = await asyncio.create_subprocess_exec(
                *argv,
                cwd=str(self.workdir),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except (OSError, ValueError) as exc:
            LOGGER.error("Build command could not be started: %s", exc)
            return BuildResult(exit_code=None, error=messages.format_error(exc))

        try:
            stdout, stderr = await process.communicate()
        except asyncio.CancelledError:
            process.kill()
            raise
        result = BuildResult(
            exit_code=process.returncode,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )
        LOGGER.info("Build command exited with %s", result.exit_code)
        if result.stdout:
            LOGGER.debug("Build stdout: %s", result.stdout)
        if result.stderr:
            LOGGER.debug("Build stderr: %s", result.stderr)
        return result

    async def _run_and_report(self, ticket: CommitTicket, chat_id: int, reply_to: Optional[int]) -> BuildResult:
        try:
            result = await self.run_command()
        finally:
            ticket.release()
        try:
            await self._report(result, chat_id, reply_to)
        except Exception:
            LOGGER.exception("Failed to report build result to chat %s", chat_id)
        return result

    async def _report(self, result: BuildResult, chat_id: int, reply_to: Optional[int]) -> None:
        if result.ok:
            headline = messages.BUILD_FINISHED
        else:
            headline = messages.build_failed(result.exit_code)
        await self.transport.send_typing(chat_id)
        await self.transport.send_text(chat_id, headline, reply_to=reply_to, markdown=True)
        for block in (result.error, result.stdout, result.stderr):
            if block and block.strip():
                await self.transport.send_text(chat_id, messages.code_block(block), reply_to=reply_to, markdown=True)
