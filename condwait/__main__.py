#!/usr/bin/env python
"""
Wait for kubernetes resources to converge
"""

# Standard
from typing import Dict, List, Optional, Tuple
import argparse
import sys

# First Party
import aconfig
import alog

# Local
from .cmd import CmdBase, WaitConditionCmd, WaitConvergenceCmd, WaitPodsCmd
from .config import library_config
from .exceptions import CondwaitError
from .log_format import CondwaitJsonFormatter

## Constants ###################################################################

log = alog.use_channel("MAIN")

## Helpers #####################################################################


def add_library_config_args(parser, config_obj=None, path=None):
    """Automatically add args for all elements of the library config"""
    path = path or []
    setters = {}
    config_obj = config_obj or library_config
    for key, val in config_obj.items():
        sub_path = path + [key]

        # If this is a nested arg, recurse
        if isinstance(val, aconfig.AttributeAccessDict):
            setters.update(
                add_library_config_args(parser, config_obj=val, path=sub_path)
            )
            continue

        arg_name = ".".join(sub_path)
        dest_name = "_".join(sub_path)
        kwargs = {
            "default": val,
            "dest": dest_name,
            "help": f"Library config override for {arg_name} (see condwait.config)",
        }
        if isinstance(val, bool):
            kwargs["action"] = argparse.BooleanOptionalAction
        elif val is not None:
            kwargs["type"] = float if isinstance(val, (int, float)) else type(val)
        parser.add_argument(f"--{arg_name}", **kwargs)
        setters[dest_name] = sub_path
    return setters


def update_library_config(args, setters):
    """Update the library config values based on the parsed arguments"""
    for dest_name, config_path in setters.items():
        config_obj = library_config
        while len(config_path) > 1:
            config_obj = config_obj[config_path[0]]
            config_path = config_path[1:]
        config_obj[config_path[0]] = getattr(args, dest_name)


def add_command(
    subparsers: argparse._SubParsersAction,
    cmd: CmdBase,
) -> Tuple[argparse.ArgumentParser, Dict[str, List[str]]]:
    """Add the subparser and set up the default fun call"""
    parser = cmd.add_subparser(subparsers)
    parser.set_defaults(func=cmd.cmd, command_obj=cmd)
    library_args = parser.add_argument_group("Library Configuration")
    library_config_setters = add_library_config_args(library_args)
    return parser, library_config_setters


## Main ########################################################################


def main(argv: Optional[List[str]] = None, commands: Optional[List[CmdBase]] = None):
    """Parse the command line, run the selected wait, and exit non-zero if it
    did not succeed
    """
    parser = argparse.ArgumentParser(description=__doc__)
    subparsers = parser.add_subparsers(
        help="Available commands", dest="command", required=True
    )
    library_config_setters = {}
    for cmd in commands or [WaitConditionCmd(), WaitConvergenceCmd(), WaitPodsCmd()]:
        _, library_config_setters = add_command(subparsers, cmd)
    args = parser.parse_args(argv)

    # Provide overrides to the library configs
    update_library_config(args, library_config_setters)

    # Reconfigure logging
    alog.configure(
        default_level=library_config.log_level,
        filters=library_config.log_filters,
        formatter=(
            CondwaitJsonFormatter(**args.command_obj.log_fields(args))
            if library_config.log_json
            else "pretty"
        ),
        thread_id=library_config.log_thread_id,
    )

    # Run the command's function
    try:
        args.func(args)
    except CondwaitError as err:
        log.error("%s: %s", type(err).__name__, err)
        sys.exit(1)


if __name__ == "__main__":  # pragma: no cover
    main()
