"""Entry point for running hubitat2mqtt as a module.

Usage:
    python -m hubitat2mqtt                    # Use env vars or defaults
    python -m hubitat2mqtt -c /path/to/config.yaml
    python -m hubitat2mqtt --help
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path

from . import __version__
from .app import run_app
from .config import create_default_config, print_env_help


def main() -> int:
    """Main entry point.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    parser = argparse.ArgumentParser(
        prog="hubitat2mqtt",
        description="Publish Hubitat devices to Home Assistant via MQTT",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Docker/Environment variables (no config file needed):
  MQTT_HOST=192.168.1.100 HUB_ADAPTER=mypackage.maker:create_hub hubitat2mqtt

  # Config file:
  hubitat2mqtt -c /etc/hubitat2mqtt/config.yaml
  hubitat2mqtt --generate-config > config.yaml
        """,
    )

    parser.add_argument(
        "-c", "--config",
        default=None,
        help="Path to configuration file (optional if using env vars)",
    )
    parser.add_argument(
        "-v", "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--generate-config",
        action="store_true",
        help="Print default configuration and exit",
    )
    parser.add_argument(
        "--env-help",
        action="store_true",
        help="Print environment variable help and exit",
    )

    args = parser.parse_args()

    if args.generate_config:
        print(create_default_config())
        return 0

    if args.env_help:
        print(print_env_help())
        return 0

    # Determine configuration source
    config_path = args.config
    using_env = os.environ.get("HUB_ADAPTER") is not None

    # If no config file specified and no env vars, check default location
    if not config_path and not using_env:
        default_paths = [
            "/etc/hubitat2mqtt/config.yaml",
            "/config/config.yaml",  # Docker default
            "config.yaml",
        ]
        for path in default_paths:
            if Path(path).exists():
                config_path = path
                break

    if not config_path and not using_env:
        print("Error: No configuration found.", file=sys.stderr)
        print("\nOptions:", file=sys.stderr)
        print("  1. Set HUB_ADAPTER and MQTT_HOST environment variables", file=sys.stderr)
        print("  2. Create a config file: hubitat2mqtt --generate-config > config.yaml", file=sys.stderr)
        print("  3. Specify config path: hubitat2mqtt -c /path/to/config.yaml", file=sys.stderr)
        print("\nFor environment variable help: hubitat2mqtt --env-help", file=sys.stderr)
        return 1

    if config_path:
        print(f"Using configuration file: {config_path}")
    else:
        print(f"Using environment variable configuration (HUB_ADAPTER={os.environ.get('HUB_ADAPTER')})")

    try:
        asyncio.run(run_app(config_path))
        return 0
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 0
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
