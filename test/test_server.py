"""
Tests for the MCP tool handlers and server registration.
"""

import asyncio
import json

import pytest

from evmscope.config import Settings
from evmscope.core.rpc import RPCClient
from evmscope.core.session import TraceSession
from evmscope.server import EvmTools, create_server
from evmscope.utils.exceptions import InvalidArgumentError

from conftest import ALICE, TOKEN, TX_HASH, FakeProvider, FakeSession
from test_call_tree import build_trace

TOOL_NAMES = {
    'eth_blockNumber',
    'eth_chainId',
    'eth_getBalance',
    'eth_getTransactionCount',
    'eth_getBlockByNumber',
    'eth_getTransactionByHash',
    'eth_call',
    'trace_transaction',
}


@pytest.fixture
def provider(transaction):
    return FakeProvider({
        'eth_blockNumber': '0x1b4',
        'eth_chainId': '0x1',
        'eth_getBalance': '0xde0b6b3a7640000',
        'eth_getTransactionCount': '0x7',
        'eth_getBlockByNumber': {"number": "0x1b4", "transactions": []},
        'eth_getTransactionByHash': transaction,
        'eth_call': '0x' + '00' * 31 + '64',
        'debug_traceTransaction': lambda params: build_trace(),
    })


@pytest.fixture
def session(provider, metadata_routes):
    settings = Settings(api_url="https://explorer.example/api")
    return TraceSession(settings, rpc=RPCClient(settings.rpc_url, provider=provider),
                        http=FakeSession(metadata_routes))


@pytest.fixture
def tools(session):
    return EvmTools(session)


class TestTools:

    def test_block_number(self, tools):
        assert json.loads(tools.block_number())["result"] == '0x1b4'

    def test_output_is_pretty_printed(self, tools):
        assert tools.chain_id() == json.dumps({"jsonrpc": "2.0", "id": 1, "result": "0x1"}, indent=2)

    def test_get_balance_defaults_to_latest(self, tools, provider):
        tools.get_balance(ALICE)
        assert provider.calls[-1] == ('eth_getBalance', [ALICE, 'latest'])

    def test_block_numbers_become_quantities(self, tools, provider):
        tools.get_transaction_count(ALICE, '100')
        assert provider.calls[-1] == ('eth_getTransactionCount', [ALICE, '0x64'])
        tools.get_block_by_number('finalized')
        assert provider.calls[-1] == ('eth_getBlockByNumber', ['finalized', True])

    def test_call(self, tools, provider):
        tools.call(TOKEN, '0x18160ddd')
        assert provider.calls[-1] == ('eth_call', [{'to': TOKEN, 'data': '0x18160ddd'}, 'latest'])

    def test_transaction_by_hash(self, tools, provider):
        tools.get_transaction_by_hash(TX_HASH)
        assert provider.calls[-1] == ('eth_getTransactionByHash', [TX_HASH])

    def test_trace_transaction(self, tools):
        report = tools.trace_transaction(TX_HASH)
        assert 'CALL from Caller to Token' in report
        assert json.loads(tools.trace_transaction(TX_HASH, 'json'))["trace"]["type"] == 'CALL'

    @pytest.mark.parametrize("call, argument", [
        (lambda t: t.get_balance('0x1234'), 'address'),
        (lambda t: t.get_balance(ALICE, 'yesterday'), 'block'),
        (lambda t: t.get_block_by_number('-1'), 'blockNumber'),
        (lambda t: t.get_transaction_by_hash('0xabc'), 'txHash'),
        (lambda t: t.call(TOKEN, '0x123'), 'data'),
        (lambda t: t.call('not-an-address', '0x'), 'to'),
        (lambda t: t.trace_transaction('0x00'), 'txHash'),
    ])
    def test_invalid_arguments(self, tools, provider, call, argument):
        with pytest.raises(InvalidArgumentError) as exc_info:
            call(tools)
        assert f"'{argument}'" in exc_info.value.message
        assert provider.calls == []


class TestServer:

    def test_registers_all_tools(self, session):
        server = create_server(session=session)
        tools = asyncio.run(server.list_tools())
        assert {tool.name for tool in tools} == TOOL_NAMES

    def test_tool_schemas_use_original_argument_names(self, session):
        server = create_server(session=session)
        tools = {tool.name: tool for tool in asyncio.run(server.list_tools())}
        assert set(tools['eth_getBlockByNumber'].inputSchema["properties"]) == {'blockNumber'}
        assert set(tools['trace_transaction'].inputSchema["properties"]) == {'txHash', 'format'}
        assert tools['eth_getBalance'].inputSchema["required"] == ['address']
