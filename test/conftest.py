"""
Shared fixtures: in-process stand-ins for the metadata service and the node.
"""

import pytest
import requests

from evmscope.core.call_tree import CallTreeDecoder
from evmscope.core.codec import ParameterCodec
from evmscope.core.metadata import ContractCache, ContractMetadataResolver
from evmscope.core.signatures import SignatureTable

API_URL = "https://explorer.example/api"

TOKEN = "0x" + "11" * 20
PROXY = "0x" + "22" * 20
IMPLEMENTATION = "0x" + "33" * 20
ALICE = "0x" + "aa" * 20
BOB = "0x" + "bb" * 20
UNKNOWN = "0x" + "44" * 20

TX_HASH = "0x" + "ab" * 32

TRANSFER_TOPIC = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"

ERC20_ABI = [
    {
        "type": "function",
        "name": "transfer",
        "inputs": [{"name": "to", "type": "address"}, {"name": "amount", "type": "uint256"}],
        "outputs": [{"name": "", "type": "bool"}],
    },
    {
        "type": "function",
        "name": "balanceOf",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"name": "balance", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "holders",
        "inputs": [],
        "outputs": [{"name": "amounts", "type": "uint256[]"}],
    },
    {
        "type": "event",
        "name": "Transfer",
        "inputs": [
            {"name": "from", "type": "address", "indexed": True},
            {"name": "to", "type": "address", "indexed": True},
            {"name": "value", "type": "uint256", "indexed": False},
        ],
    },
]

VAULT_ABI = [
    {
        "type": "function",
        "name": "deposit",
        "inputs": [{"name": "assets", "type": "uint256"}, {"name": "receiver", "type": "address"}],
        "outputs": [{"name": "shares", "type": "uint256"}],
    },
]


def word(value) -> str:
    """Left-pad an int or a hex address to one 32-byte word."""
    if isinstance(value, int):
        return format(value, '064x')
    return value[2:].lower().rjust(64, '0')


class FakeResponse:
    def __init__(self, payload=None, status_code=200, text=None):
        self._payload = payload
        self.status_code = status_code
        self.ok = 200 <= status_code < 400
        self.text = text

    def json(self):
        if self.text is not None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeSession:
    """
    Answers GET requests from a dict keyed by the last path segment.

    Values may be a payload dict, a FakeResponse, or an exception instance
    to raise. Unknown paths answer 404.
    """

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.requests = []

    def get(self, url, headers=None, timeout=None, params=None):
        self.requests.append({"url": url, "params": params, "timeout": timeout})
        key = url.rstrip('/').rsplit('/', 1)[-1]
        answer = self.routes.get(key)
        if answer is None:
            return FakeResponse({"message": "Not found"}, status_code=404)
        if isinstance(answer, Exception):
            raise answer
        if isinstance(answer, FakeResponse):
            return answer
        return FakeResponse(answer)

    def count(self, address):
        return sum(1 for r in self.requests if r["url"].endswith(address))


class FakeProvider:
    """
    JSON-RPC provider stand-in.

    `handlers` maps a method name to a result value, a callable taking the
    params list, or an exception instance to raise. Error envelopes are
    produced for values wrapped in `rpc_error`.
    """

    def __init__(self, handlers=None):
        self.handlers = dict(handlers or {})
        self.calls = []

    def make_request(self, method, params):
        self.calls.append((method, params))
        handler = self.handlers.get(method)
        if isinstance(handler, Exception):
            raise handler
        if callable(handler):
            handler = handler(params)
        if isinstance(handler, RPCErrorResult):
            return {"jsonrpc": "2.0", "id": 1, "error": {"code": handler.code, "message": handler.message}}
        return {"jsonrpc": "2.0", "id": 1, "result": handler}


class RPCErrorResult:
    def __init__(self, message, code=-32000):
        self.message = message
        self.code = code


def rpc_error(message, code=-32000):
    return RPCErrorResult(message, code)


def contract_payload(name, abi, implementations=None):
    payload = {"name": name, "abi": abi}
    if implementations is not None:
        payload["implementations"] = implementations
    return payload


@pytest.fixture
def metadata_routes():
    return {
        TOKEN: contract_payload("Token", ERC20_ABI),
        PROXY: contract_payload("VaultProxy", [], implementations=[{"address": IMPLEMENTATION, "name": "Vault"}]),
        IMPLEMENTATION: contract_payload("Vault", VAULT_ABI),
    }


@pytest.fixture
def http(metadata_routes):
    return FakeSession(metadata_routes)


@pytest.fixture
def signatures():
    return SignatureTable()


@pytest.fixture
def codec(signatures):
    return ParameterCodec(signatures)


@pytest.fixture
def resolver(codec, http):
    return ContractMetadataResolver(API_URL, codec=codec, cache=ContractCache(), session=http)


@pytest.fixture
def decoder(resolver, codec, signatures):
    return CallTreeDecoder(resolver, codec, signatures)


@pytest.fixture
def transaction():
    return {
        "hash": TX_HASH,
        "from": ALICE,
        "to": TOKEN,
        "value": "0x0",
        "gas": "0x186a0",
        "gasPrice": "0x3b9aca00",
        "input": "0xa9059cbb" + word(BOB) + word(42),
    }


@pytest.fixture
def connection_error():
    return requests.ConnectionError("connection refused")
