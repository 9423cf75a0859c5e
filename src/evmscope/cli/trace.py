"""
Trace command implementation.

Fetches a transaction's execution trace from the node and prints the
decoded report to stdout.
"""

from evmscope.config import Settings
from evmscope.core.session import TraceSession
from evmscope.utils.exceptions import EvmscopeError
from evmscope.utils.helpers import require_tx_hash
from evmscope.cli.common import handle_command_error, print_connection_info


def trace_command(args, settings: Settings) -> int:
    """
    Execute the trace command.

    Args:
        args: Parsed command arguments
        settings: Resolved settings for this invocation

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    json_mode = getattr(args, 'json', False)
    if args.raw:
        output_format = 'raw'
    elif json_mode:
        output_format = 'json'
    else:
        output_format = 'text'

    try:
        tx_hash = require_tx_hash('tx_hash', args.tx_hash)
        print_connection_info(settings.rpc_url, json_mode)
        report = TraceSession(settings).trace(tx_hash, output_format)
    except EvmscopeError as e:
        return handle_command_error(e, json_mode)

    print(report, end='' if report.endswith('\n') else '\n')
    return 0
