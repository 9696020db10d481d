"""Example: Snapshot the chain, move time forward and roll everything back."""

from __future__ import annotations

import logging

from dotenv import load_dotenv

from hardhat_session import ConnectionCoordinator, load_config

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

RECIPIENT = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
ONE_DAY = 24 * 60 * 60


def main() -> None:
    """Send ether and advance a day, then restore the snapshot."""

    conn = ConnectionCoordinator.from_config(load_config())

    with conn:
        snapshot = conn.make_snapshot()
        print(f"Snapshot: {snapshot}")
        print(f"Block before: {conn.get_block_number()} at {conn.get_block_timestamp()}")

        outcome = conn.send_ether(RECIPIENT, 10**18)
        print(f"Transfer status: {outcome.status.value} ({outcome.transaction_hash})")

        conn.time_travel(ONE_DAY)
        print(f"Block after travel: {conn.get_block_number()} at {conn.get_block_timestamp()}")
        print(f"Recipient balance: {conn.get_ether_balance(RECIPIENT)}")

        conn.restore_snapshot(snapshot)
        print(f"Block after revert: {conn.get_block_number()}")
        print(f"Recipient balance: {conn.get_ether_balance(RECIPIENT)}")


if __name__ == "__main__":
    main()
