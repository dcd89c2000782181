"""
Minimal contract ABIs and call encoders for Uniswap V2 style venues.

Calls are encoded by hand with eth_abi so a whole phase can be shipped to
the Multicall2 helper in one ``tryAggregate`` round trip.
"""

from typing import Any, Dict, List, Sequence, Tuple

from eth_abi import decode, encode
from eth_utils import function_signature_to_4byte_selector

# Multicall2 deployments (same address on several chains is not guaranteed)
MULTICALL2_ADDRESSES: Dict[int, str] = {
    1: "0x5BA1e12693Dc8F9c48aAD8770482f4739bEeD696",  # Ethereum
    137: "0x275617327c958bD06b5D6b871E7f491D76113dd8",  # Polygon
    56: "0x1Ee38d535d541c55C9dae27B12edf090C608E6Fb",  # BSC
}

MULTICALL2_ABI = [
    {
        "inputs": [
            {"name": "requireSuccess", "type": "bool"},
            {
                "components": [
                    {"name": "target", "type": "address"},
                    {"name": "callData", "type": "bytes"},
                ],
                "name": "calls",
                "type": "tuple[]",
            },
        ],
        "name": "tryAggregate",
        "outputs": [
            {
                "components": [
                    {"name": "success", "type": "bool"},
                    {"name": "returnData", "type": "bytes"},
                ],
                "name": "returnData",
                "type": "tuple[]",
            }
        ],
        "stateMutability": "view",
        "type": "function",
    }
]


class ContractFunction:
    """
    A view function described by its signature and output types.

    Example:
        GET_PAIR = ContractFunction("getPair(address,address)", ["address"])
        data = GET_PAIR.encode(token_a, token_b)
        (pair,) = GET_PAIR.decode(return_data)
    """

    def __init__(self, signature: str, output_types: Sequence[str]):
        self.signature = signature
        self.name = signature.split("(", 1)[0]
        self.input_types: List[str] = _parse_input_types(signature)
        self.output_types: List[str] = list(output_types)
        self.selector: bytes = function_signature_to_4byte_selector(signature)

    def encode(self, *args: Any) -> bytes:
        if len(args) != len(self.input_types):
            raise ValueError(
                f"{self.signature} takes {len(self.input_types)} args, got {len(args)}"
            )
        if not self.input_types:
            return self.selector
        return self.selector + encode(self.input_types, list(args))

    def decode(self, data: bytes) -> Tuple[Any, ...]:
        """Decode return data; raises on empty or malformed payloads."""
        if not data:
            raise ValueError(f"empty return data for {self.name}")
        return tuple(decode(self.output_types, bytes(data)))

    def __repr__(self) -> str:
        return f"ContractFunction({self.signature!r})"


def _parse_input_types(signature: str) -> List[str]:
    args = signature[signature.index("(") + 1 : signature.rindex(")")]
    return [a.strip() for a in args.split(",") if a.strip()]


# Factory
GET_PAIR = ContractFunction("getPair(address,address)", ["address"])

# Pair
GET_RESERVES = ContractFunction("getReserves()", ["uint112", "uint112", "uint32"])
TOKEN0 = ContractFunction("token0()", ["address"])
TOKEN1 = ContractFunction("token1()", ["address"])

# ERC20
DECIMALS = ContractFunction("decimals()", ["uint8"])
