#!/usr/bin/env python3
"""
Run an offline demo of the transaction pipeline.

Demonstrates:
1. A locally signed send
2. Rejection of a send the balance cannot cover
3. A hardware-signed batch paced by the stagger delay

Account data and the hardware device are simulated in memory; nothing
is broadcast.
"""

import argparse
import asyncio
import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from arktx.config import ArkTxConfig, NetworkType, set_config
from arktx.core.errors import InsufficientFunds
from arktx.core.request import (
    Account,
    BatchItem,
    FeeSchedule,
    HardwareSigning,
    LocalSigning,
    TransactionRequest,
)
from arktx.core.service import TransactionBuilderService
from arktx.core.transaction import TransactionType
from arktx.crypto.ark import ArkCrypto, address_from_public_key, get_hash, get_keys, sign_hash
from arktx.hardware.interface import HardwareSigner
from arktx.node.interface import AccountProvider, FeeResolver


ARKTOSHI = 100_000_000


class DemoNode(AccountProvider, FeeResolver):
    """In-memory balances with the ARK v1 default fees."""

    def __init__(self, balances: Dict[str, int]):
        self.balances = balances

    async def get_account(self, address: str) -> Account:
        return Account(address=address, balance=self.balances.get(address, 0))

    async def get_fees(self) -> FeeSchedule:
        return FeeSchedule(
            send=10_000_000,
            secondsignature=500_000_000,
            delegate=2_500_000_000,
            vote=100_000_000,
        )


class SimulatedDevice(HardwareSigner):
    """Signs with a passphrase held 'on the device' and reports timing."""

    def __init__(self, passphrase: str, started: float):
        self.keys = get_keys(passphrase)
        self.started = started

    async def sign(self, device_ref: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        elapsed = asyncio.get_running_loop().time() - self.started
        print(f"   [{elapsed:5.2f}s] {device_ref} signing {payload['amount'] / ARKTOSHI:.2f} to {payload['recipientId'][:10]}...")
        await asyncio.sleep(0.3)
        return {"signature": sign_hash(get_hash(payload, skip_signature=True), self.keys)}


class DemoRunner:
    """Runs the offline demonstration."""

    def __init__(self, stagger_ms: int):
        self.config = ArkTxConfig(network=NetworkType.DEVNET, hardware_stagger_ms=stagger_ms)
        set_config(self.config)
        self.crypto = ArkCrypto()
        self.results = {
            "timestamp": datetime.now().isoformat(),
            "network": self.config.network.value,
            "steps": [],
        }

        version = self.config.network_version
        self.wallet_passphrase = "demo wallet passphrase"
        self.device_passphrase = "demo device passphrase"
        self.wallet = address_from_public_key(get_keys(self.wallet_passphrase).public_key, version)
        self.device_key = get_keys(self.device_passphrase).public_key
        self.device_wallet = address_from_public_key(self.device_key, version)
        self.recipients = [
            address_from_public_key(get_keys(f"demo recipient {i}").public_key, version)
            for i in range(3)
        ]

        self.node = DemoNode({
            self.wallet: 10 * ARKTOSHI,
            self.device_wallet: 50 * ARKTOSHI,
        })

    def _record(self, name: str, status: str, **details) -> None:
        self.results["steps"].append({"name": name, "status": status, **details})

    async def run(self):
        """Run all demo steps."""
        print("\n" + "=" * 70)
        print("ARKTX OFFLINE DEMO")
        print("=" * 70)
        print(f"   Wallet: {self.wallet}")
        print(f"   Device wallet: {self.device_wallet}")

        await self.step_local_send()
        await self.step_insufficient_funds()
        await self.step_hardware_batch()

        return self.results

    async def step_local_send(self):
        """Step 1: build and sign a send with the wallet passphrase."""
        print("\n" + "-" * 70)
        print("STEP 1: Locally signed send")
        print("-" * 70)

        service = TransactionBuilderService(self.node, self.node, self.crypto, config=self.config)
        request = TransactionRequest(
            kind=TransactionType.SEND,
            from_address=self.wallet,
            signer=LocalSigning(self.wallet_passphrase),
            recipient=self.recipients[0],
            amount=2 * ARKTOSHI,
            memo="demo",
        )

        tx = await service.create_send_transaction(request)

        print(f"   Transaction: {tx.id[:16]}...")
        print(f"   Fee: {tx.fee / ARKTOSHI:.2f} {self.config.token_symbol}")
        self._record("local_send", "PASSED", tx_id=tx.id)

    async def step_insufficient_funds(self):
        """Step 2: a send larger than the balance is rejected before signing."""
        print("\n" + "-" * 70)
        print("STEP 2: Insufficient funds")
        print("-" * 70)

        service = TransactionBuilderService(self.node, self.node, self.crypto, config=self.config)
        request = TransactionRequest(
            kind=TransactionType.SEND,
            from_address=self.wallet,
            signer=LocalSigning(self.wallet_passphrase),
            recipient=self.recipients[1],
            amount=10 * ARKTOSHI,
        )

        try:
            await service.create_send_transaction(request)
        except InsufficientFunds as e:
            print(f"   Rejected: short by {e.shortfall / ARKTOSHI:.2f} {self.config.token_symbol}")
            self._record("insufficient_funds", "PASSED", shortfall=e.shortfall)
            return

        print("   Send was not rejected")
        self._record("insufficient_funds", "FAILED")

    async def step_hardware_batch(self):
        """Step 3: three device-signed sends, one request per stagger interval."""
        print("\n" + "-" * 70)
        print(f"STEP 3: Hardware batch (stagger {self.config.hardware_stagger_ms} ms)")
        print("-" * 70)

        device = SimulatedDevice(self.device_passphrase, asyncio.get_running_loop().time())
        service = TransactionBuilderService(self.node, self.node, self.crypto, device, self.config)
        items = [
            BatchItem(address=address, amount=(i + 1) * ARKTOSHI)
            for i, address in enumerate(self.recipients)
        ]

        result = await service.create_multiple_send_transactions(
            self.device_wallet,
            items,
            HardwareSigning(device_ref="simulated-0", public_key=self.device_key),
        )

        for tx in result:
            print(f"   {tx.recipient_id[:10]}... {tx.amount / ARKTOSHI:.2f} -> {tx.id[:16]}...")
        print(f"   Total debited: {result.total / ARKTOSHI:.2f} {self.config.token_symbol}")
        self._record("hardware_batch", "PASSED", batch_id=result.batch_id, size=len(result))


def main():
    parser = argparse.ArgumentParser(description="Run the arktx offline demo")
    parser.add_argument(
        "--stagger-ms",
        type=int,
        default=2000,
        help="Delay between hardware signing requests (default: 2000)",
    )
    parser.add_argument(
        "--output",
        help="Write the results as JSON to this file",
    )

    args = parser.parse_args()

    results = asyncio.run(DemoRunner(args.stagger_ms).run())

    passed = sum(1 for step in results["steps"] if step["status"] == "PASSED")
    print(f"\n   Steps: {passed}/{len(results['steps'])} PASSED")

    if args.output:
        Path(args.output).write_text(json.dumps(results, indent=2), encoding="utf-8")
        print(f"   Results saved to {args.output}")


if __name__ == "__main__":
    main()
