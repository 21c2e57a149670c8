import json

import pytest
import responses

from ckbkit.packed import Block, CellOutput, Header, OutPoint, Script, Transaction
from ckbkit.rpc import (
    CkbRpcClient,
    RpcError,
    RpcHttpError,
    RpcJsonError,
    RpcResponseError,
)

URL = "http://127.0.0.1:8114/"

HEADER_JSON = {
    "version": "0x0",
    "compact_target": "0x1e083126",
    "timestamp": "0x16e70e6985c",
    "number": "0x0",
    "epoch": "0x0",
    "parent_hash": "0x" + "00" * 32,
    "transactions_root": "0x" + "11" * 32,
    "proposals_hash": "0x" + "00" * 32,
    "extra_hash": "0x" + "00" * 32,
    "dao": "0x" + "22" * 32,
    "nonce": "0x0",
    "hash": "0x" + "33" * 32,
}


@pytest.fixture
def mocked():
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps


def reply(mocked, result=None, error=None):
    body = {"jsonrpc": "2.0", "id": 1}
    if error is not None:
        body["error"] = error
    else:
        body["result"] = result
    mocked.add(responses.POST, URL, json=body)


def sent(mocked, index=0):
    return json.loads(mocked.calls[index].request.body)


def test_rpc_error_display():
    error = RpcResponseError(-32700, "parse error")
    assert str(error) == "jsonrpc error: `Parse error: parse error`"
    assert isinstance(error, RpcError)


def test_error_prefixes():
    assert str(RpcJsonError("bad")) == "parse json error: `bad`"
    assert str(RpcHttpError("down")) == "http error: `down`"
    assert str(RpcResponseError(-1, "boom")) == "jsonrpc error: `Server error: boom`"


def test_invalid_url():
    with pytest.raises(ValueError):
        CkbRpcClient("not a url")


def test_tip_block_number_request_shape(mocked):
    reply(mocked, "0x400")
    client = CkbRpcClient(URL)
    assert client.get_tip_block_number() == 1024
    body = sent(mocked)
    assert body == {"id": 1, "jsonrpc": "2.0", "method": "get_tip_block_number", "params": None}


def test_ids_increment(mocked):
    reply(mocked, "0x1")
    reply(mocked, "0x2")
    client = CkbRpcClient(URL)
    client.get_tip_block_number()
    client.get_tip_block_number()
    assert [sent(mocked, i)["id"] for i in range(2)] == [1, 2]
    assert client.id == 2


def test_get_block_hash(mocked):
    reply(mocked, "0x" + "ab" * 32)
    reply(mocked, None)
    client = CkbRpcClient(URL)
    assert client.get_block_hash(5) == b"\xab" * 32
    assert sent(mocked)["params"] == ["0x5"]
    assert client.get_block_hash(6) is None


def test_get_live_cell_encodes_out_point(mocked):
    reply(mocked, {"cell": None, "status": "unknown"})
    client = CkbRpcClient(URL)
    result = client.get_live_cell(OutPoint(b"\x01" * 32, 1), True)
    assert result["status"] == "unknown"
    assert sent(mocked)["params"] == [{"tx_hash": "0x" + "01" * 32, "index": "0x1"}, True]


def test_send_transaction(mocked):
    tx_hash = "0x" + "cd" * 32
    reply(mocked, tx_hash)
    tx = Transaction(outputs=[CellOutput(capacity=100, lock=Script())], outputs_data=[b""])
    client = CkbRpcClient(URL)
    assert client.send_transaction(tx, "passthrough") == bytes.fromhex("cd" * 32)
    assert sent(mocked)["params"] == [tx.to_json(), "passthrough"]


def test_get_header_converts(mocked):
    reply(mocked, HEADER_JSON)
    header = CkbRpcClient(URL).get_header(b"\x33" * 32)
    assert isinstance(header, Header)
    assert header.number == 0
    assert header.hash == b"\x33" * 32


def test_get_block_by_number_converts(mocked):
    reply(mocked, {"header": HEADER_JSON, "transactions": [], "uncles": [], "proposals": []})
    block = CkbRpcClient(URL).get_block_by_number(0)
    assert isinstance(block, Block)
    assert block.header.timestamp == 0x16E70E6985C
    assert block.transactions == []
    assert sent(mocked)["params"] == ["0x0"]


def test_failure_response(mocked):
    reply(mocked, error={"code": -32601, "message": "Method not found"})
    with pytest.raises(RpcResponseError) as info:
        CkbRpcClient(URL).get_tip_block_number()
    assert info.value.code == -32601
    assert str(info.value) == "jsonrpc error: `Method not found: Method not found`"


def test_malformed_result(mocked):
    reply(mocked, "not hex")
    with pytest.raises(RpcJsonError):
        CkbRpcClient(URL).get_tip_block_number()


def test_unit_method(mocked):
    reply(mocked, None)
    reply(mocked, 1)
    client = CkbRpcClient(URL)
    assert client.set_network_active(False) is None
    assert sent(mocked)["params"] == [False]
    with pytest.raises(RpcJsonError):
        client.ping_peers()


def test_set_ban_params(mocked):
    reply(mocked, None)
    result = CkbRpcClient(URL).set_ban("192.168.0.2", "insert", 1000, True, None)
    assert result is None
    assert sent(mocked)["params"] == ["192.168.0.2", "insert", "0x3e8", True, None]
    assert sent(mocked)["method"] == "set_ban"


def test_connection_error(mocked):
    with pytest.raises(RpcHttpError):
        CkbRpcClient(URL).get_tip_block_number()


def test_non_json_body(mocked):
    mocked.add(responses.POST, URL, body="oops")
    with pytest.raises(RpcHttpError):
        CkbRpcClient(URL).get_tip_block_number()


def test_unencodable_param():
    client = CkbRpcClient(URL)
    with pytest.raises(RpcJsonError):
        client.call("get_block", object())


def test_verify_transaction_proof(mocked):
    reply(mocked, ["0x" + "01" * 32, "0x" + "02" * 32])
    hashes = CkbRpcClient(URL).verify_transaction_proof({"block_hash": "0x" + "00" * 32})
    assert hashes == [b"\x01" * 32, b"\x02" * 32]