"""
Capcolor CLI - Main entry point.

Provides command-line interface for sending MQTT commands to the color monitor.
"""

import argparse
import sys
from typing import Any, Dict, List, Optional

from .mqtt_client import MQTTCommandClient

COMMAND_TOPIC = "capcolor/control/{service_id}/commands"


def build_command(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Translate parsed CLI arguments into a control command payload.

    Raises:
        ValueError: If the subcommand is unknown
    """
    if args.command == 'set-mode':
        return {'command': 'set_mode', 'mode': args.mode}
    if args.command == 'list-zones':
        return {'command': 'list_zones'}
    if args.command == 'status':
        return {'command': 'get_status'}
    raise ValueError(f"Unknown command: {args.command}")


def send_command(
    command: Dict[str, Any],
    service_id: str = "line_01",
    broker: str = "localhost",
    port: int = 1883,
    username: Optional[str] = None,
    password: Optional[str] = None
) -> None:
    """Send command to the color monitor via MQTT."""
    topic = COMMAND_TOPIC.format(service_id=service_id)

    client = MQTTCommandClient(
        broker=broker,
        port=port,
        username=username,
        password=password
    )
    client.send_command(topic, command, qos=1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="capcolor-cli",
        description="Capcolor CLI - Send MQTT commands to the zone color monitor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Switch to the on-device classifier
  capcolor-cli set-mode local

  # Switch back to the remote model
  capcolor-cli set-mode remote

  # Publish zones / stats on the status topic
  capcolor-cli list-zones
  capcolor-cli status
"""
    )

    parser.add_argument(
        "--service-id",
        default="line_01",
        help="Target service ID (default: line_01)"
    )
    parser.add_argument(
        "--broker",
        default="localhost",
        help="MQTT broker host (default: localhost)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=1883,
        help="MQTT broker port (default: 1883)"
    )
    parser.add_argument("--username", default=None, help="MQTT username")
    parser.add_argument("--password", default=None, help="MQTT password")

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    set_mode = subparsers.add_parser('set-mode', help='Switch classification mode')
    set_mode.add_argument('mode', choices=['remote', 'local'], help='Classification mode')

    subparsers.add_parser('list-zones', help='Publish current zones on the status topic')
    subparsers.add_parser('status', help='Publish scheduler stats on the status topic')

    return parser


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        command = build_command(args)
        send_command(
            command,
            args.service_id,
            args.broker,
            args.port,
            args.username,
            args.password
        )
    except Exception as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
