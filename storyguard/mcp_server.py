"""FastMCP server exposing consistency checks as MCP tools.

Tools:
  - check_project(slug)                     : run every detector, statuses merged
  - set_issue_status(slug, issue_id, action): ignore/acknowledge/fix/undo
  - resolve_conflict(slug, conflict_id, action): keep_original/use_newer/dismiss

The server is built around an injected Storage; nothing lives at module level.

Usage:
    uv run python -m storyguard.mcp_server
"""

from __future__ import annotations

import os
from pathlib import Path

from mcp.server.fastmcp import FastMCP

from storyguard.config import get_config
from storyguard.continuity import ConflictLedger
from storyguard.engine import ConsistencyEngine
from storyguard.rules import VoiceSettings
from storyguard.storage import Storage


def create_mcp(storage: Storage) -> FastMCP:
    mcp = FastMCP("storyguard")

    def _load(slug: str):
        manuscript = storage.get_manuscript(slug)
        if manuscript is None:
            raise ValueError(f"Project not found: {slug}")
        return manuscript

    def _engine(slug: str) -> ConsistencyEngine:
        voice = VoiceSettings.model_validate(get_config(storage.base)["voice"])
        return ConsistencyEngine(storage.get_statuses(slug), voice)

    @mcp.tool()
    def check_project(slug: str) -> dict:
        """Run all consistency detectors on a project and return the issue report."""
        report = _engine(slug).check(_load(slug))
        return report.model_dump(mode="json")

    @mcp.tool()
    def set_issue_status(slug: str, issue_id: str, action: str) -> dict:
        """Apply ignore, acknowledge, fix or undo to an issue. Returns its new status."""
        _load(slug)
        engine = _engine(slug)
        status = engine.apply(issue_id, action)  # type: ignore[arg-type]
        storage.save_statuses(slug, engine.statuses)
        return {"id": issue_id, "status": status}

    @mcp.tool()
    def resolve_conflict(slug: str, conflict_id: str, action: str) -> dict:
        """Resolve a continuity conflict with keep_original, use_newer or dismiss."""
        manuscript = _load(slug)
        ledger = ConflictLedger(manuscript.conflicts, manuscript.facts, manuscript.chapters)
        conflict = ledger.apply(conflict_id, action)
        storage.save_conflicts(slug, ledger.all())
        return conflict.model_dump(mode="json")

    return mcp


if __name__ == "__main__":
    data_dir = Path(os.getenv("DATA_DIR", Path(__file__).parent.parent / "data"))
    create_mcp(Storage(data_dir)).run()
