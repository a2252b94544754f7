"""
Wallet package — connected address tracking and signature requests.
"""

from backend_passport_gate.wallet.address_source import AddressSource
from backend_passport_gate.wallet.signature import LocalAccountWallet, SignatureProvider, WalletProvider

__all__ = ["AddressSource", "LocalAccountWallet", "SignatureProvider", "WalletProvider"]
