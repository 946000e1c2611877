"""Command line entry point: one subcommand per task."""
import argparse
import sys
from pathlib import Path
from typing import List, Optional

from venv_deploy.config import load_settings
from venv_deploy.errors import DeployError, log_error
from venv_deploy.logging import configure_logging, get_logger
from venv_deploy.tasks import DESCRIPTIONS, WORKFLOWS, run_task
from venv_deploy.transport import LocalTransport

logger = get_logger("cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="venv-deploy",
        description="Manage shared and per-release Python virtualenvs",
    )
    parser.add_argument("--release-path", required=True, help="Directory of the release being deployed")
    parser.add_argument("--shared-path", required=True, help="Directory shared between releases")
    parser.add_argument("--current-path", required=True, help="Directory of the active release")
    parser.add_argument("--config", type=Path, default=None, help="TOML config file")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--timeout", type=float, default=None, help="Per-command timeout in seconds")

    subparsers = parser.add_subparsers(dest="task", required=True)
    for name in WORKFLOWS:
        subparsers.add_parser(name, help=DESCRIPTIONS.get(name))
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    logger.debug({"event": "cli_invoked", "task": args.task, "config": str(args.config) if args.config else None})

    try:
        settings = load_settings(
            args.release_path,
            args.shared_path,
            args.current_path,
            config_file=args.config,
        )
        run_task(args.task, settings, LocalTransport(timeout=args.timeout))
    except DeployError as e:
        log_error(e, {"task": args.task})
        print(str(e), file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
