"""storyguard launcher.

    python main.py check manuscript.json     print the issue report for a snapshot
    python main.py check --project SLUG      same, for a stored project
    python main.py serve                     run the HTTP API
    python main.py --demo ...                (re)create the demo project first
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "13020"))


def _check(args: argparse.Namespace, storage) -> int:
    from storyguard.config import get_config
    from storyguard.engine import ConsistencyEngine
    from storyguard.models import Manuscript
    from storyguard.rules import VoiceSettings

    voice = VoiceSettings.model_validate(get_config(storage.base)["voice"])
    if args.project:
        manuscript = storage.get_manuscript(args.project)
        if manuscript is None:
            print(f"No such project: {args.project}", file=sys.stderr)
            return 2
        engine = ConsistencyEngine(storage.get_statuses(args.project), voice)
    elif args.path:
        manuscript = Manuscript.model_validate_json(Path(args.path).read_text())
        engine = ConsistencyEngine(voice_settings=voice)
    else:
        print("check needs a manuscript path or --project", file=sys.stderr)
        return 2

    report = engine.check(manuscript)
    if args.json:
        print(json.dumps(report.model_dump(mode="json"), indent=2))
    else:
        for issue in report.issues:
            print(f"[{issue.severity:7}] {issue.status:12} {issue.kind}: {issue.description}")
        print(f"{report.total} issues, {report.pending} pending, "
              f"{report.pending_errors} pending errors")
    return 1 if report.pending_errors else 0


def main() -> int:
    parser = argparse.ArgumentParser(description="storyguard narrative consistency checker")
    parser.add_argument("--data-dir", type=Path, default=None,
                        help="Data storage directory (default: ./data)")
    parser.add_argument("--demo", action="store_true",
                        help="Clean and create the demo project")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command")

    check = sub.add_parser("check", help="Print consistency issues")
    check.add_argument("path", nargs="?", help="Manuscript JSON file")
    check.add_argument("--project", help="Stored project slug")
    check.add_argument("--json", action="store_true", help="Emit the report as JSON")

    sub.add_parser("serve", help="Run the HTTP API")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    from storyguard.storage import Storage

    data_dir = args.data_dir or Path(os.getenv("DATA_DIR", str(ROOT / "data")))
    storage = Storage(data_dir)
    if args.demo:
        from storyguard.demo import create_demo_data
        slug = create_demo_data(storage)
        print(f"Demo project written: {slug}")

    if args.command == "check":
        return _check(args, storage)
    if args.command == "serve":
        import uvicorn

        os.environ["DATA_DIR"] = str(data_dir.resolve())
        print(f"Starting API on http://localhost:{PORT} ...")
        uvicorn.run("storyguard.app:create_app", factory=True, host=HOST, port=PORT)
        return 0
    if not args.demo:
        parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
