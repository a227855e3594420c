"""Unit tests for the JSON-lines status log."""

import json

from sdlc_orchestrator.clients.status_log import StatusLog
from sdlc_orchestrator.models.run import Run, RunStatus


def make_run(**kwargs):
    kwargs.setdefault("session_id", "s-1")
    return Run(repository="https://git/repo", branch="main", **kwargs)


class TestStatusLog:
    def test_update_status_writes_camel_case_line(self, tmp_path):
        log = StatusLog(tmp_path / "status")
        run = make_run(custom_root_folder="app")

        log.update_status(run, "SDLC run created", attempt_number=0)

        lines = log.path_for("s-1").read_text().splitlines()
        assert len(lines) == 1
        data = json.loads(lines[0])
        assert data["sessionId"] == "s-1"
        assert data["status"] == "pending"
        assert data["customRootFolder"] == "app"
        assert data["message"] == "SDLC run created"
        assert data["attemptNumber"] == 0
        assert isinstance(data["timestamp"], int)
        assert "error" not in data

    def test_records_are_appended_in_order(self, tmp_path):
        log = StatusLog(tmp_path)
        run = make_run()

        log.update_status(run, "created")
        run.transition(RunStatus.DEPLOYING)
        log.update_status(run, "deploying")

        assert [r.status for r in log.read("s-1")] == [RunStatus.PENDING, RunStatus.DEPLOYING]

    def test_latest_skips_log_only_records(self, tmp_path):
        log = StatusLog(tmp_path)
        run = make_run()

        log.update_status(run, "created")
        log.add_log(run, "Polling attempt 1/5...")
        log.add_log(run, "Status: deploying")

        latest = log.latest("s-1")
        assert latest.message == "created"
        assert log.logs("s-1") == ["Polling attempt 1/5...", "Status: deploying"]

    def test_latest_includes_status_record_with_logs(self, tmp_path):
        log = StatusLog(tmp_path)
        run = make_run()

        log.update_status(run, "failed hard", logs=["boom"], error="boom")

        assert log.latest("s-1").error == "boom"
        assert log.logs("s-1") == ["boom"]

    def test_unknown_session(self, tmp_path):
        log = StatusLog(tmp_path)

        assert log.read("missing") == []
        assert log.latest("missing") is None
        assert log.logs("missing") == []

    def test_sessions_use_separate_files(self, tmp_path):
        log = StatusLog(tmp_path)

        log.update_status(make_run(session_id="a"), "a")
        log.update_status(make_run(session_id="b"), "b")

        assert log.path_for("a") != log.path_for("b")
        assert [r.message for r in log.read("a")] == ["a"]
