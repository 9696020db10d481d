"""Example: Fork mainnet at a fixed block and move funds out of an impersonated account."""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

from hardhat_session import ConnectionCoordinator, load_config

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# WETH contract; holds plenty of ether at any recent mainnet block.
DEFAULT_WHALE = "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"


def main() -> None:
    """Reset to the configured fork and send ether as the whale."""

    config = load_config()
    fork = config.fork_spec()
    if fork is None:
        raise ValueError("FORK_URL or ALCHEMY_KEY not found in environment variables")

    whale = os.getenv("WHALE_ADDRESS", DEFAULT_WHALE)

    with ConnectionCoordinator.from_config(config) as conn:
        if not conn.hardhat_reset(fork):
            raise RuntimeError("Node refused to reset to fork")

        print(f"Whale balance at block {fork.at_block}: {conn.get_ether_balance(whale)}")

        outcome = conn.make_impersonated_call(
            {"from": whale, "to": conn.current_address(), "value": 10**18}
        )
        print(f"Impersonated transfer status: {outcome.status.value}")
        print(f"Our balance: {conn.get_ether_balance(conn.current_address())}")

        conn.stop_impersonating_account(whale)


if __name__ == "__main__":
    main()
