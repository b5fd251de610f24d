"""
repogen CLI.

Usage:
    repogen build -r REPO                        # Write REPO/repo.json
    repogen build -r REPO --download-host URL    # Use a different download host
    repogen build -r REPO --state-format legacy  # Force State.toml
    repogen build -r REPO --on-manifest-error abort
    repogen config show -r REPO                  # Show REPO/.repogen/config.yaml
    repogen config set KEY VALUE -r REPO         # Set a config value
    repogen config get KEY -r REPO               # Get a config value
"""

import argparse
import logging
import os
import sys
from pathlib import Path

from pydantic import ValidationError

from repogen.config import (
    CONFIG_KEYS,
    ENV_PREFIX,
    LOG_LEVELS,
    MANIFEST_ERROR_CHOICES,
    STATE_FORMAT_CHOICES,
    Settings,
    _load_yaml_config,
    get_config_path,
    save_yaml_config,
)
from repogen.core.index import generate_repository
from repogen.errors import RepoGenError
from repogen.lib.logger import setup_logging

logger = logging.getLogger(__name__)


def _repo_path(raw: str) -> Path:
    return Path(raw).expanduser().resolve()


# --- build ---


def cmd_build(args: argparse.Namespace) -> None:
    """Generate repo.json for a repository."""
    overrides = {
        "download_host": args.download_host,
        "state_format": args.state_format,
        "manifest_errors": args.on_manifest_error,
        "log_level": args.log_level,
    }
    try:
        settings = Settings(
            repo_path=_repo_path(args.repo_path),
            **{k: v for k, v in overrides.items() if v is not None},
        )
    except ValidationError as e:
        print(f"Error: invalid configuration:\n{e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(settings.log_level, settings.log_format)

    if not settings.repo_path.is_dir():
        logger.error(f"Repository path is not a directory: {settings.repo_path}")
        sys.exit(1)

    try:
        index_path = generate_repository(settings)
    except RepoGenError as e:
        logger.error(str(e))
        sys.exit(1)

    print(f"Wrote {index_path}")


# --- config ---


def cmd_config(args: argparse.Namespace) -> None:
    """Config management: show, set, get."""
    action = getattr(args, "action", None)
    repo_path = _repo_path(args.repo_path)

    if action == "show":
        _config_show(repo_path)
    elif action == "set":
        _config_set(repo_path, args.key, args.value)
    elif action == "get":
        _config_get(repo_path, args.key)
    else:
        print("Usage: repogen config {show|set|get}")


def _config_show(repo_path: Path) -> None:
    """Show current config with env overrides noted."""
    config = _load_yaml_config(repo_path)

    print(f"\nConfig: {get_config_path(repo_path)}")
    print("-" * 40)

    if not config:
        print("  (empty, using defaults)")
        return

    for key, value in config.items():
        env_key = f"{ENV_PREFIX}{key.upper()}"
        override = f" (overridden by env: {env_key})" if os.environ.get(env_key) else ""
        print(f"  {key}: {value}{override}")


def _config_set(repo_path: Path, key: str, value: str) -> None:
    """Set a config value."""
    if key not in CONFIG_KEYS:
        print(f"Unknown key: {key}")
        print(f"Valid keys: {', '.join(sorted(CONFIG_KEYS))}")
        sys.exit(1)

    if key == "state_format" and value not in STATE_FORMAT_CHOICES:
        print(f"Error: state_format must be one of {', '.join(STATE_FORMAT_CHOICES)}, got '{value}'")
        sys.exit(1)
    elif key == "manifest_errors" and value not in MANIFEST_ERROR_CHOICES:
        print(f"Error: manifest_errors must be one of {', '.join(MANIFEST_ERROR_CHOICES)}, got '{value}'")
        sys.exit(1)
    elif key == "log_level":
        value = value.upper()
        if value not in LOG_LEVELS:
            print(f"Error: log_level must be one of {', '.join(LOG_LEVELS)}, got '{value}'")
            sys.exit(1)
    elif key == "download_host" and not value.startswith(("http://", "https://")):
        print(f"Error: download_host must be an http(s) URL, got '{value}'")
        sys.exit(1)

    config = _load_yaml_config(repo_path)
    config[key] = value
    save_yaml_config(repo_path, config)
    print(f"Set {key} = {value}")


def _config_get(repo_path: Path, key: str) -> None:
    """Get a single config value."""
    env_val = os.environ.get(f"{ENV_PREFIX}{key.upper()}")
    if env_val:
        print(env_val)
        return

    config = _load_yaml_config(repo_path)
    if key in config:
        print(config[key])
    else:
        print(f"Key '{key}' not set in config.yaml")
        sys.exit(1)


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="repogen",
        description="Build the repo.json plugin index from build state and manifests",
    )
    subparsers = parser.add_subparsers(dest="command")

    # build
    build_parser = subparsers.add_parser("build", help="Generate repo.json")
    build_parser.add_argument(
        "--repo-path", "-r", required=True,
        help="Repository root containing the state file and stable/",
    )
    build_parser.add_argument(
        "--download-host",
        help="Base address for download links (default: configured host)",
    )
    build_parser.add_argument(
        "--state-format", choices=STATE_FORMAT_CHOICES,
        help="State file encoding (default: auto)",
    )
    build_parser.add_argument(
        "--on-manifest-error", choices=MANIFEST_ERROR_CHOICES,
        help="Skip plugins with bad manifests, or abort the run (default: skip)",
    )
    build_parser.add_argument(
        "--log-level", type=str.upper, choices=LOG_LEVELS,
        help="Log level (default: INFO)",
    )

    # config subcommand
    config_parser = subparsers.add_parser("config", help="Configuration management")
    config_sub = config_parser.add_subparsers(dest="action")
    for name, help_text in (("show", "Show current config"),
                            ("set", "Set a config value"),
                            ("get", "Get a config value")):
        action_parser = config_sub.add_parser(name, help=help_text)
        if name in ("set", "get"):
            action_parser.add_argument("key", help="Config key")
        if name == "set":
            action_parser.add_argument("value", help="Config value")
        action_parser.add_argument("--repo-path", "-r", required=True, help="Repository root")

    args = parser.parse_args()

    if args.command == "build":
        cmd_build(args)
    elif args.command == "config":
        if getattr(args, "action", None) is None:
            config_parser.print_help()
        else:
            cmd_config(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
