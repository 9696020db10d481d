"""ABI of the debug helper contract deployed alongside contracts under test."""

DebugContract_abi = [
    {
        "type": "function",
        "name": "forward",
        "stateMutability": "payable",
        "inputs": [
            {"name": "_to", "type": "address"},
            {"name": "_data", "type": "bytes"},
        ],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "blockTimestamp",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "event",
        "name": "Forwarded",
        "anonymous": False,
        "inputs": [
            {"name": "_to", "type": "address", "indexed": True},
            {"name": "_data", "type": "bytes", "indexed": False},
            {"name": "_wei", "type": "uint256", "indexed": False},
            {"name": "_success", "type": "bool", "indexed": False},
            {"name": "_resultData", "type": "bytes", "indexed": False},
        ],
    },
]
