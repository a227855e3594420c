"""Append-only status log for runs.

Each run writes JSON lines to its own file keyed by session id. External observers
read the latest record for progress.
"""

import json
import logging
from pathlib import Path
from typing import Any, List, Optional, Union

from sdlc_orchestrator.constants import STATUS_DIR
from sdlc_orchestrator.models.run import Run, StatusRecord

logger = logging.getLogger(__name__)


class StatusLog:
    def __init__(self, directory: Union[str, Path] = STATUS_DIR) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, session_id: str) -> Path:
        return self._directory / f"{session_id}.jsonl"

    def append(self, record: StatusRecord) -> StatusRecord:
        self._directory.mkdir(parents=True, exist_ok=True)
        with open(self.path_for(record.session_id), "a", encoding="utf-8") as f:
            f.write(json.dumps(record.to_wire()) + "\n")
        return record

    def _record_for(self, run: Run, **fields: Any) -> StatusRecord:
        return StatusRecord(
            session_id=run.session_id,
            status=run.status,
            repository=run.repository,
            branch=run.branch,
            custom_root_folder=run.custom_root_folder or None,
            **fields,
        )

    def update_status(self, run: Run, message: Optional[str] = None, **fields: Any) -> StatusRecord:
        """Persist the run's current status together with any extra record fields."""
        record = self.append(self._record_for(run, message=message, **fields))
        logger.info(f"Status updated: {run.status.value}{f' - {message}' if message else ''}")
        return record

    def add_log(self, run: Run, message: str) -> StatusRecord:
        logger.info(message)
        return self.append(self._record_for(run, logs=[message]))

    def read(self, session_id: str) -> List[StatusRecord]:
        path = self.path_for(session_id)
        if not path.is_file():
            return []
        records = []
        with open(path, "r", encoding="utf-8") as f:
            for line in f:
                if line.strip():
                    records.append(StatusRecord.model_validate(json.loads(line)))
        return records

    def latest(self, session_id: str) -> Optional[StatusRecord]:
        """Most recent record that carries a status change rather than only log lines."""
        records = self.read(session_id)
        for record in reversed(records):
            if record.logs is None or record.message is not None:
                return record
        return records[-1] if records else None

    def logs(self, session_id: str) -> List[str]:
        lines: List[str] = []
        for record in self.read(session_id):
            lines.extend(record.logs or [])
        return lines
