"""
Tests for decoding callTracer trees into DecodedFrame nodes.
"""

from eth_abi import encode

from evmscope.core.call_tree import ROOT_CALLER_LABEL, count_frames
from evmscope.core.codec import ParameterCodec
from evmscope.core.models import CallFrame
from evmscope.core.signatures import SignatureTable

from conftest import (
    ALICE,
    BOB,
    IMPLEMENTATION,
    PROXY,
    TOKEN,
    TRANSFER_TOPIC,
    UNKNOWN,
    VAULT_ABI,
    word,
)

DEPOSIT_SELECTOR = ParameterCodec(SignatureTable(seed={})).compute_selector(VAULT_ABI[0])
TRANSFER_INPUT = '0xa9059cbb' + word(BOB) + word(42)
REVERT_OUTPUT = '0x08c379a0' + encode(['string'], ['insufficient balance']).hex()


def build_trace():
    return {
        "type": "CALL",
        "from": ALICE,
        "to": TOKEN,
        "input": TRANSFER_INPUT,
        "output": '0x' + word(1),
        "gas": "0x186a0",
        "gasUsed": "0x5208",
        "value": "0x0",
        "logs": [{
            "address": TOKEN,
            "topics": [TRANSFER_TOPIC, '0x' + word(ALICE), '0x' + word(BOB)],
            "data": '0x' + word(42),
        }],
        "calls": [
            {
                "type": "STATICCALL",
                "from": TOKEN,
                "to": TOKEN,
                "input": '0x70a08231' + word(ALICE),
                "output": '0x' + word(500),
                "gas": "0x2710",
                "gasUsed": "0x3e8",
                "calls": [
                    {"type": "CALL", "from": TOKEN, "to": UNKNOWN, "input": "0x12345678", "gas": "0x64", "gasUsed": "0x32"},
                ],
            },
            {
                "type": "DELEGATECALL",
                "from": TOKEN,
                "to": PROXY,
                "input": DEPOSIT_SELECTOR + word(7) + word(BOB),
                "gas": "0x2710",
                "gasUsed": "0x1f4",
            },
        ],
    }


class TestDecodeCall:

    def test_uses_contract_abi(self, decoder):
        call = decoder.decode_call(TRANSFER_INPUT, TOKEN)
        assert call.name == 'transfer'
        assert call.contract_name == 'Token'
        assert call.display() == f'transfer(to: {BOB}, amount: 42)'

    def test_short_input_is_unknown(self, decoder):
        call = decoder.decode_call('0x1234', TOKEN)
        assert (call.name, call.signature) == ('unknown', 'unknown()')
        assert decoder.decode_call(None, TOKEN).name == 'unknown'

    def test_unknown_selector_is_shown_as_itself(self, decoder):
        call = decoder.decode_call('0x12345678', UNKNOWN)
        assert call.name == '0x12345678'
        assert call.args == []
        assert call.display() == '0x12345678'

    def test_signature_table_names_calls_without_metadata(self, decoder):
        call = decoder.decode_call('0x095ea7b3' + word(BOB) + word(5), UNKNOWN)
        assert call.name == 'approve'
        assert call.display() == f'approve(param0: {BOB}, param1: 5)'

    def test_delegatecall_uses_implementation_abi(self, decoder):
        call = decoder.decode_call(DEPOSIT_SELECTOR + word(7) + word(BOB), PROXY, is_delegate=True)
        assert call.name == 'deposit'
        assert call.contract_name == 'Vault'
        assert [(a.name, a.value) for a in call.args] == [('assets', '7'), ('receiver', BOB)]

    def test_delegatecall_without_implementation_uses_target_abi(self, decoder):
        call = decoder.decode_call(TRANSFER_INPUT, TOKEN, is_delegate=True)
        assert call.name == 'transfer'
        assert call.contract_name == 'Token'

    def test_plain_call_to_proxy_ignores_implementation(self, decoder):
        call = decoder.decode_call(DEPOSIT_SELECTOR + word(7) + word(BOB), PROXY)
        assert call.name == DEPOSIT_SELECTOR


class TestDecodeOutput:

    def test_named_output(self, decoder):
        call = decoder.decode_call('0x70a08231' + word(ALICE), TOKEN)
        assert decoder.decode_output('0x' + word(500), call) == {'balance': '500'}

    def test_array_output(self, decoder):
        call = decoder.decode_call('0x' + _holders_selector(), TOKEN)
        output = '0x' + word(32) + word(3) + word(1) + word(2) + word(3)
        assert decoder.decode_output(output, call) == {'amounts': ['1', '2', '3']}

    def test_no_output_or_no_abi(self, decoder):
        call = decoder.decode_call('0x12345678', UNKNOWN)
        assert decoder.decode_output('0x' + word(1), call) is None
        assert decoder.decode_output('0x', call) is None


def _holders_selector():
    codec = ParameterCodec(SignatureTable(seed={}))
    return codec.compute_selector({"name": "holders", "inputs": []})[2:]


class TestDecodeTree:

    def test_preorder(self, decoder):
        root = decoder.decode_tree(CallFrame.from_dict(build_trace()))
        nodes = list(root.walk())
        assert [n.frame.type for n in nodes] == ['CALL', 'STATICCALL', 'CALL', 'DELEGATECALL']
        assert [n.depth for n in nodes] == [0, 1, 2, 1]
        assert [n.call.name for n in nodes] == ['transfer', 'balanceOf', '0x12345678', 'deposit']

    def test_labels(self, decoder):
        root = decoder.decode_tree(CallFrame.from_dict(build_trace()))
        static_call, unknown_call, delegate = list(root.walk())[1:]
        assert (root.from_label, root.to_label) == (ROOT_CALLER_LABEL, 'Token')
        assert (static_call.from_label, static_call.to_label) == ('Token', 'Token')
        assert unknown_call.to_label == UNKNOWN
        assert delegate.to_label == 'VaultProxy'

    def test_outputs_and_events(self, decoder):
        root = decoder.decode_tree(CallFrame.from_dict(build_trace()))
        assert root.decoded_output == {'param0': True}
        assert root.children[0].decoded_output == {'balance': '500'}
        (event,) = root.events
        assert event.name == 'Transfer'
        assert [a.value for a in event.args] == [ALICE, BOB, '42']

    def test_each_contract_fetched_once(self, decoder, http):
        decoder.decode_tree(CallFrame.from_dict(build_trace()))
        assert http.count(TOKEN) == 1
        assert http.count(PROXY) == 1
        assert http.count(IMPLEMENTATION) == 1
        assert http.count(UNKNOWN) == 1

    def test_max_frames_limits_decoding(self, decoder):
        frame = CallFrame.from_dict(build_trace())
        root = decoder.decode_tree(frame, max_frames=2)
        assert root.count() == 2
        assert count_frames(frame) == 4

    def test_reverted_frame(self, decoder):
        trace = {
            "type": "CALL", "from": ALICE, "to": TOKEN, "input": TRANSFER_INPUT,
            "output": REVERT_OUTPUT, "error": "execution reverted", "gas": "0x100", "gasUsed": "0x100",
        }
        root = decoder.decode_tree(CallFrame.from_dict(trace))
        assert root.revert_reason == 'insufficient balance'
        assert root.decoded_output is None

    def test_tracer_revert_reason_preferred(self, decoder):
        trace = {
            "type": "CALL", "from": ALICE, "to": TOKEN, "input": TRANSFER_INPUT,
            "output": REVERT_OUTPUT, "error": "execution reverted", "revertReason": "from tracer",
        }
        root = decoder.decode_tree(CallFrame.from_dict(trace))
        assert root.revert_reason == 'from tracer'

    def test_unknown_event_topic(self, decoder):
        trace = {
            "type": "CALL", "from": ALICE, "to": UNKNOWN, "input": "0x",
            "logs": [{"address": UNKNOWN, "topics": ['0x' + 'ef' * 32], "data": "0x"}],
        }
        root = decoder.decode_tree(CallFrame.from_dict(trace))
        assert root.events[0].name == '0x' + 'ef' * 32
        assert root.call.name == 'unknown'

    def test_deep_tree_is_not_recursive(self, decoder):
        trace = {"type": "CALL", "from": ALICE, "to": UNKNOWN, "input": "0x"}
        node = trace
        for _ in range(3000):
            child = {"type": "CALL", "from": UNKNOWN, "to": UNKNOWN, "input": "0x"}
            node["calls"] = [child]
            node = child
        root = decoder.decode_tree(CallFrame.from_dict(trace))
        assert root.count() == 3001
