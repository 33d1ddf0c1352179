"""Build command execution, reporting and gate release."""
import asyncio
import shlex
import sys

from services import messages
from services.commit.build_trigger import BuildTrigger
from services.commit.gate import CommitGate


def python_command(code):
    return shlex.join([sys.executable, "-c", code])


def run_build(trigger, gate):
    async def scenario():
        ticket = gate.try_acquire(1)
        task = trigger.start(ticket, chat_id=1, reply_to=7)
        if task is not None:
            await task
        return task

    return asyncio.run(scenario())


class TestBuildTrigger:
    def test_unconfigured_releases_immediately_without_report(self, transport):
        gate = CommitGate()
        trigger = BuildTrigger(None, None, transport)
        assert run_build(trigger, gate) is None
        assert not gate.committing
        assert transport.sent == []

    def test_missing_workdir_counts_as_unconfigured(self, transport):
        trigger = BuildTrigger("make", None, transport)
        assert not trigger.configured

    def test_success_reports_headline_and_output(self, transport, tmp_path):
        gate = CommitGate()
        code = "import sys; print('built'); print('warned', file=sys.stderr)"
        trigger = BuildTrigger(python_command(code), tmp_path, transport)

        run_build(trigger, gate)

        assert not gate.committing
        texts = transport.texts()
        assert texts[0] == messages.BUILD_FINISHED
        assert "built" in texts[1] and texts[1].startswith("```")
        assert "warned" in texts[2]
        assert all(m["reply_to"] == 7 and m["markdown"] for m in transport.sent)

    def test_runs_in_working_directory(self, transport, tmp_path):
        trigger = BuildTrigger(python_command("import os; print(os.getcwd())"), tmp_path, transport)
        result = asyncio.run(trigger.run_command())
        assert result.ok
        assert result.stdout.strip() == str(tmp_path.resolve())

    def test_non_zero_exit_is_reported_not_raised(self, transport, tmp_path):
        gate = CommitGate()
        trigger = BuildTrigger(python_command("import sys; sys.exit(3)"), tmp_path, transport)

        run_build(trigger, gate)

        assert not gate.committing
        assert transport.texts() == [messages.build_failed(3)]

    def test_spawn_failure_is_reported_and_releases_gate(self, transport, tmp_path):
        gate = CommitGate()
        trigger = BuildTrigger("definitely-not-a-real-build-tool --all", tmp_path, transport)

        run_build(trigger, gate)

        assert not gate.committing
        texts = transport.texts()
        assert texts[0] == messages.build_failed(None)
        assert "FileNotFoundError" in texts[1]


class TestCommitGate:
    def test_second_acquire_fails_until_release(self):
        gate = CommitGate()
        ticket = gate.try_acquire(1)
        assert gate.try_acquire(2) is None
        ticket.release()
        assert gate.try_acquire(2) is not None

    def test_double_release_does_not_free_next_holder(self):
        gate = CommitGate()
        first = gate.try_acquire(1)
        first.release()
        second = gate.try_acquire(2)
        first.release()
        assert gate.committing
        second.release()
        assert not gate.committing
