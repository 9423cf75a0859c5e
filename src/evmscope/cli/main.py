#!/usr/bin/env python3
"""
Main entry point for evmscope

Parses arguments, configures logging and routes to the command
implementations in the cli/ package.
"""

import sys
import argparse
import logging

from evmscope import __version__
from evmscope.utils.colors import Colors
from evmscope.utils.exceptions import EvmscopeError
from evmscope.utils.logging import setup_logging
from .trace import trace_command
from .serve import serve_command
from .common import handle_command_error, settings_from_args


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='evmscope - EVM JSON-RPC and trace decoding MCP server')
    parser.add_argument('--version', '-v', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('--rpc-url', '-r', default=None, help='RPC URL (default: $RPC_URL or http://localhost:8545)')
    parser.add_argument('--api-url', default=None, help='Blockscout API base URL for contract metadata (default: $API_URL)')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')
    parser.add_argument('--verbose', action='store_true', help='Log raw RPC payloads (more detailed than --debug)')
    parser.add_argument('--quiet', '-q', action='store_true', help='Suppress log output')
    parser.add_argument('--log-file', default=None, help='Also write logs to this file (default: $EVMSCOPE_LOG_FILE)')
    parser.add_argument('--no-color', action='store_true', help='Disable colored output')

    subparsers = parser.add_subparsers(dest='command', help='Commands')
    subparsers.required = True

    # serve command
    subparsers.add_parser('serve', help='Run the MCP server on stdio')

    # trace command
    trace_parser = subparsers.add_parser('trace', help='Trace and decode a transaction')
    trace_parser.add_argument('tx_hash', help='Transaction hash to trace')
    trace_parser.add_argument('--json', action='store_true', help='Output the decoded call tree as JSON')
    trace_parser.add_argument('--raw', action='store_true', help='Show the opcode-level trace instead of the call tree')
    trace_parser.add_argument('--max-lines', '-m', type=int, default=None,
                              help='Maximum calls or operations to list (default: 300)')
    return parser


def main(argv=None):
    """Main entry point for evmscope CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.no_color:
        Colors.disable()

    try:
        settings = settings_from_args(args)
    except EvmscopeError as e:
        return handle_command_error(e)

    setup_logging(
        settings,
        base_level=logging.INFO if args.command == 'serve' else logging.WARNING,
        quiet=args.quiet,
        verbose=args.verbose,
        use_colors=not args.no_color,
    )

    if args.command == 'trace':
        return trace_command(args, settings)
    elif args.command == 'serve':
        return serve_command(args, settings)

    return 0


if __name__ == '__main__':
    sys.exit(main())
