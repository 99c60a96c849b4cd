from json import JSONDecodeError
from pathlib import Path
from typing import cast

from pydantic import HttpUrl, WebsocketUrl
from ujson import loads as ujson_loads
from web3 import HTTPProvider, IPCProvider, JSONBaseProvider, LegacyWebSocketProvider, Web3
from web3.types import RPCResponse

from vaultsync.config import CONFIG_FILE, RpcEndpoint, settings
from vaultsync.types import ChainId


def _fast_decode_rpc_response(raw_response: bytes) -> RPCResponse:
    try:
        return cast("RPCResponse", ujson_loads(raw_response))
    except ValueError:
        # web3 only handles JSONDecodeError from the decoder
        msg = "Could not decode the RPC response"
        raise JSONDecodeError(msg, "[]", 0) from None


def _provider_for_endpoint(endpoint: RpcEndpoint) -> JSONBaseProvider:
    match endpoint:
        case HttpUrl():
            return HTTPProvider(str(endpoint))
        case WebsocketUrl():
            return LegacyWebSocketProvider(str(endpoint))
        case Path():
            return IPCProvider(str(endpoint))
        case _:
            msg = f"Unsupported RPC endpoint {endpoint!r}"
            raise ValueError(msg)


def get_web3_from_config(*, chain_id: ChainId, optimize: bool = True) -> Web3:
    """
    Connect to the RPC endpoint configured for the chain and check that it serves that chain.

    With `optimize`, the default middleware is removed and responses are decoded with ujson. Log
    fetching is the bulk of the traffic during a vault update.
    """

    if (endpoint := settings.rpc.get(chain_id)) is None:
        msg = f"Chain ID {chain_id} does not have an RPC endpoint in the config file {CONFIG_FILE}"
        raise ValueError(msg)

    provider = _provider_for_endpoint(endpoint)
    if optimize:
        provider.decode_rpc_response = _fast_decode_rpc_response  # type:ignore[method-assign]
    w3 = Web3(provider)
    if optimize:
        w3.middleware_onion.clear()

    if (endpoint_chain_id := w3.eth.chain_id) != chain_id:
        msg = (
            f"The endpoint {endpoint} serves chain ID {endpoint_chain_id}, but the config file "
            f"lists it for chain ID {chain_id}."
        )
        raise ValueError(msg)

    return w3
