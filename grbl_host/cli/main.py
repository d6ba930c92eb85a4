# grbl_host/cli/main.py
from __future__ import annotations

from pathlib import Path
from typing import Optional

from grbl_host.core.errors import GrblHostError

from grbl_host.cli.args import parse_args
from grbl_host.cli.commands import (
    cmd_cancel_jog,
    cmd_home,
    cmd_hold,
    cmd_jog,
    cmd_move,
    cmd_ports,
    cmd_reset,
    cmd_resume,
    cmd_send,
    cmd_set,
    cmd_settings,
    cmd_status,
    cmd_unlock,
    configure_console_logging,
    configure_file_logging,
)

COMMANDS = {
    "ports": cmd_ports,
    "status": cmd_status,
    "settings": cmd_settings,
    "set": cmd_set,
    "home": cmd_home,
    "move": cmd_move,
    "jog": cmd_jog,
    "cancel-jog": cmd_cancel_jog,
    "hold": cmd_hold,
    "resume": cmd_resume,
    "reset": cmd_reset,
    "unlock": cmd_unlock,
    "send": cmd_send,
}


def main(argv: Optional[list[str]] = None) -> int:
    try:
        args = parse_args(argv)

        configure_console_logging(args.verbose)
        if args.log_file:
            configure_file_logging(Path(args.log_file))

        handler = COMMANDS.get(args.cmd)
        if handler is None:
            return 2
        return handler(args)
    except GrblHostError as e:
        print(f"ERROR: {e.message}")
        if e.hint:
            print(f"Hint: {e.hint}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
