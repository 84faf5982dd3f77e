"""JSON file storage.

Project snapshots and issue statuses are flat JSON files under a base
directory. There is no database; reads and writes go through plain helper
methods that load and dump JSON.

Directory layout:

    {base}/
      config.json               ← global config (see config.py)
      projects/
        {slug}.json             ← Manuscript snapshot
        {slug}/
          issue-status.json     ← {issue_id: status}, non-pending only
"""

from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path
from typing import Any

from storyguard.issues import StatusBook
from storyguard.models import ContinuityConflict, FactAssertion, Manuscript

logger = logging.getLogger(__name__)


class Storage:
    def __init__(self, base_path: Path) -> None:
        self.base = base_path
        self._root = base_path / "projects"
        self._root.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Internal path helpers
    # ------------------------------------------------------------------

    def _project_file(self, slug: str) -> Path:
        return self._root / f"{slug}.json"

    def _project_dir(self, slug: str) -> Path:
        return self._root / slug

    def _read_json(self, path: Path) -> Any:
        return json.loads(path.read_text())

    def _write_json(self, path: Path, data: Any) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, indent=2))

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def list_projects(self) -> list[str]:
        return sorted(p.stem for p in self._root.glob("*.json"))

    def save_manuscript(self, slug: str, manuscript: Manuscript) -> None:
        self._project_file(slug).write_text(manuscript.model_dump_json(indent=2))
        self._project_dir(slug).mkdir(exist_ok=True)

    def get_manuscript(self, slug: str) -> Manuscript | None:
        path = self._project_file(slug)
        if not path.exists():
            return None
        return Manuscript.model_validate_json(path.read_text())

    def delete_project(self, slug: str) -> bool:
        path = self._project_file(slug)
        if not path.exists():
            return False
        path.unlink()
        shutil.rmtree(self._project_dir(slug), ignore_errors=True)
        return True

    # ------------------------------------------------------------------
    # Issue statuses
    # ------------------------------------------------------------------

    def get_statuses(self, slug: str) -> StatusBook:
        path = self._project_dir(slug) / "issue-status.json"
        if not path.exists():
            return StatusBook()
        return StatusBook(self._read_json(path))

    def save_statuses(self, slug: str, statuses: StatusBook) -> None:
        self._write_json(self._project_dir(slug) / "issue-status.json", statuses.to_dict())

    # ------------------------------------------------------------------
    # Facts and conflicts
    # ------------------------------------------------------------------

    def save_conflicts(self, slug: str, conflicts: list[ContinuityConflict]) -> None:
        manuscript = self.get_manuscript(slug)
        if manuscript is None:
            raise KeyError(f"Unknown project: {slug}")
        manuscript.conflicts = conflicts
        self.save_manuscript(slug, manuscript)

    def add_facts(self, slug: str, facts: list[FactAssertion]) -> int:
        """Append facts whose ids are new. Existing facts are never replaced."""
        manuscript = self.get_manuscript(slug)
        if manuscript is None:
            raise KeyError(f"Unknown project: {slug}")
        known = {f.id for f in manuscript.facts}
        new = [f for f in facts if f.id not in known]
        manuscript.facts.extend(new)
        self.save_manuscript(slug, manuscript)
        logger.debug("project %s: %d new facts", slug, len(new))
        return len(new)
