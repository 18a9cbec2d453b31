"""
Publish a deployment phase to the reconnection status file.

Run by deploy pipelines at each stage of a blue-green rollout, e.g.:

    python scripts/set_deployment_status.py --status deploying \
        --message "Deploying v1.4.0" --incoming-commit abc1234 --eta-minutes 5
    python scripts/set_deployment_status.py --status normal --version 1.4.0 --commit abc1234
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from session_monitor.config import settings
from session_monitor.monitoring import StatusFile
from session_monitor.schemas import DeploymentStatus, ReconnectionStatus


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be zero or more, got {number}")
    return number


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Write the deployment status document")
    parser.add_argument(
        "--status",
        required=True,
        choices=[s.value for s in DeploymentStatus],
        help="Deployment phase",
    )
    parser.add_argument("--message", default=None, help="Deployment message shown to clients")
    parser.add_argument("--reconnecting-message", default=None, help="Message shown while reconnecting")
    parser.add_argument("--version", default=None, help="Human-readable version")
    parser.add_argument("--commit", default=None, help="Current commit SHA")
    parser.add_argument("--incoming-commit", default=None, help="Commit SHA being deployed")
    parser.add_argument("--feature", action="append", default=None, help="Release highlight (repeatable)")
    parser.add_argument("--eta-minutes", type=_non_negative_int, default=None, help="Estimated duration in minutes")
    parser.add_argument("--path", default=settings.status_file_path, help="Status file path")
    return parser.parse_args(argv)


def build_status(args: argparse.Namespace) -> ReconnectionStatus:
    return ReconnectionStatus(
        status=DeploymentStatus(args.status),
        deployment_message=args.message,
        reconnecting_message=args.reconnecting_message,
        version=args.version,
        commit=args.commit,
        incoming_commit=args.incoming_commit,
        features=args.feature,
        estimated_duration_minutes=args.eta_minutes,
    )


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    status = build_status(args)
    StatusFile(args.path).write(status)
    print(json.dumps(status.model_dump(mode="json", by_alias=True, exclude_none=True), indent=2))


if __name__ == "__main__":
    main()
