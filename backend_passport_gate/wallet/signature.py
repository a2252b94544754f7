"""
Signature provider — proof-of-ownership signatures for the scoring widget.

The wallet is an injected capability (EIP-1193 style request(method, params)),
never ambient global state. sign() always signs with the account the Address
Source currently tracks; if the wallet does not expose that account the
request fails instead of signing with a different one.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Protocol

from eth_account import Account
from eth_account.messages import encode_defunct

from backend_passport_gate.core.exceptions import WalletUnavailable
from backend_passport_gate.gate_logging import get_logger
from backend_passport_gate.wallet.address_source import AddressSource

logger = get_logger(__name__)

SignatureCallback = Callable[[str], Awaitable[str]]


class WalletProvider(Protocol):
    async def request(self, method: str, params: list[Any] | None = None) -> Any: ...


class LocalAccountWallet:
    """
    WalletProvider backed by an in-process private key (eth_account).

    Supports eth_requestAccounts / eth_accounts and personal_sign with
    params [message, address]. Messages starting with 0x are treated as hex
    bytes, everything else as UTF-8 text, matching wallet behaviour.
    """

    def __init__(self, private_key: str | bytes) -> None:
        self._account = Account.from_key(private_key)

    @classmethod
    def create(cls) -> "LocalAccountWallet":
        """New wallet with a random key (scripts and tests)."""
        return cls(Account.create().key)

    @property
    def address(self) -> str:
        return self._account.address.lower()

    async def request(self, method: str, params: list[Any] | None = None) -> Any:
        if method in ("eth_requestAccounts", "eth_accounts"):
            return [self.address]
        if method == "personal_sign":
            if not params or len(params) < 2:
                raise ValueError("personal_sign expects [message, address]")
            message, address = params[0], params[1]
            if str(address).lower() != self.address:
                raise ValueError(f"Unknown account {address}")
            signable = _signable(str(message))
            signed = self._account.sign_message(signable)
            return "0x" + bytes(signed.signature).hex()
        raise ValueError(f"Unsupported wallet method: {method}")


def _signable(message: str):
    if message.startswith("0x"):
        try:
            return encode_defunct(hexstr=message)
        except ValueError:
            pass
    return encode_defunct(text=message)


class SignatureProvider:
    """Produce personal signatures for the connected account via the injected wallet."""

    def __init__(self, address_source: AddressSource, wallet: WalletProvider | None = None) -> None:
        self._address_source = address_source
        self._wallet = wallet

    @property
    def wallet(self) -> WalletProvider | None:
        return self._wallet

    def attach_wallet(self, wallet: WalletProvider | None) -> None:
        """Inject (or remove, with None) the wallet capability."""
        self._wallet = wallet

    async def sign(self, message: str) -> str:
        """
        Sign message with the tracked account.

        Raises WalletUnavailable if no wallet is injected, no account is
        connected, or the wallet does not control the tracked account.
        """
        wallet = self._wallet
        if wallet is None:
            raise WalletUnavailable("No wallet found")
        address = self._address_source.address
        if not self._address_source.is_connected or not address:
            raise WalletUnavailable("No connected account to sign with")

        accounts = await wallet.request("eth_requestAccounts")
        available = {str(a).lower() for a in (accounts or [])}
        if address not in available:
            logger.warning("signature_account_mismatch", address=address, wallet_accounts=sorted(available))
            raise WalletUnavailable(f"Wallet does not control the connected account {address}")

        signature = await wallet.request("personal_sign", [message, address])
        logger.info("signature_produced", address=address, message_len=len(message))
        return str(signature)

    def as_callback(self) -> SignatureCallback:
        """The (message) -> awaitable[signature] callback handed to the scoring widget."""
        return self.sign


def recover_signer(message: str, signature: str) -> str:
    """Return the lowercase address that produced signature over message."""
    return Account.recover_message(_signable(message), signature=signature).lower()
