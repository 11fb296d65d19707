#!/usr/bin/env python
"""
AOS Command Line Interface

Entry point for the `aos` console script.
"""

import os
import sys
import argparse
import logging
from typing import List, Optional

from .config import AOSConfig, load_config
from .exceptions import AOSError

logger = logging.getLogger('AOS.cli')


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description='AOS - virtual filesystem, shell, version control and scheduler core'
    )

    parser.add_argument(
        '-c', '--command',
        help='Execute a single command and exit',
        type=str
    )

    parser.add_argument(
        '-f', '--file',
        help='Execute commands from a host file',
        type=str
    )

    parser.add_argument(
        '-i', '--interactive',
        help='Start in interactive mode even after executing commands',
        action='store_true'
    )

    parser.add_argument(
        '--config',
        help='Path to a YAML configuration file',
        type=str
    )

    parser.add_argument(
        '--scheduler',
        help='Run the task scheduler in the background',
        action='store_true'
    )

    parser.add_argument(
        '-d', '--debug',
        help='Enable debug logging',
        action='store_true'
    )

    parser.add_argument(
        '-v', '--version',
        help='Show version and exit',
        action='store_true'
    )

    return parser.parse_args(args)


def setup_logging(config: AOSConfig, debug: bool = False):
    handlers = [logging.StreamHandler()]
    if config.logging.file:
        handlers.append(logging.FileHandler(os.path.expanduser(config.logging.file)))
    logging.basicConfig(
        level=getattr(logging, config.logging.level.upper(), logging.INFO),
        format=config.logging.format,
        handlers=handlers
    )
    if debug:
        logging.getLogger('AOS').setLevel(logging.DEBUG)


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point for the AOS CLI"""
    parsed_args = parse_args(args)

    if parsed_args.version:
        from aos import __version__
        print(f"AOS version {__version__}")
        return 0

    try:
        config = load_config(parsed_args.config)
    except AOSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    setup_logging(config, parsed_args.debug)

    from .context import AppContext
    from .shell.console import AOSConsole

    try:
        context = AppContext.create(config)
    except AOSError as e:
        logger.error(f"Failed to start: {e}")
        return 1

    console = AOSConsole(context.shell)
    if parsed_args.scheduler:
        context.scheduler.start()

    try:
        exit_code = 0
        if parsed_args.command:
            result = context.shell.execute(parsed_args.command)
            console.show_result(result)
            exit_code = result.exit_code
            if not parsed_args.interactive:
                return exit_code

        if parsed_args.file:
            if not os.path.exists(parsed_args.file):
                print(f"Error: File '{parsed_args.file}' not found", file=sys.stderr)
                return 1
            with open(parsed_args.file, 'r', encoding='utf-8') as f:
                for line in f:
                    line = line.strip()
                    if line and not line.startswith('#'):
                        result = context.shell.execute(line)
                        console.show_result(result)
                        exit_code = result.exit_code
            if not parsed_args.interactive:
                return exit_code

        console.run()
        return 0
    finally:
        context.close()


if __name__ == '__main__':
    sys.exit(main())
