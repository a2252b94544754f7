#!/usr/bin/env python3
"""
Run the full dual-phase check for one address from the command line.

Connects the address, waits for the client score and (when it passes) the
server verification at VERIFY_URL, then prints the access panel as JSON.
Exit code 0 when access is unlocked, 2 when locked, 1 on configuration error.

Usage: python check_address.py 0xabc...  [--verify-url http://localhost:8000/verify-score]
"""

import argparse
import asyncio
import json
import sys
from dataclasses import replace

from backend_passport_gate.config import get_settings
from backend_passport_gate.core.exceptions import ConfigurationError, InvalidAddress
from backend_passport_gate.scoring.client_fetcher import ClientScoreFetcher
from backend_passport_gate.verification.gateway import ServerVerificationGateway
from backend_passport_gate.verification.session import VerificationSession
from backend_passport_gate.wallet.address_source import AddressSource


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Check Passport score gate for a wallet address")
    parser.add_argument("address", help="Ethereum wallet address (0x + 40 hex)")
    parser.add_argument("--verify-url", default=None, help="Override VERIFY_URL")
    return parser.parse_args(argv)


async def run_check(address: str, verify_url: str | None = None) -> dict:
    settings = get_settings()
    if verify_url:
        settings = replace(settings, verify_url=verify_url)

    source = AddressSource()
    session = VerificationSession(
        source,
        ClientScoreFetcher.from_settings(settings),
        ServerVerificationGateway.from_settings(settings),
    )
    async with session:
        source.connect(address)
        await session.wait_idle()
        return {
            "state": session.state.to_dict(),
            "panel": session.panel().to_dict(),
            "transitions": [t.to_dict() for t in session.machine.history if t.changed],
        }


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    try:
        out = asyncio.run(run_check(args.address, args.verify_url))
    except (ConfigurationError, InvalidAddress) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    print(json.dumps(out, indent=2))
    return 0 if out["panel"]["unlocked"] else 2


if __name__ == "__main__":
    sys.exit(main())
