"""
Derivation oracle: phrase -> address bytes.

The search engine only sees `derive(words) -> (address, ok)`. The BIP44
implementation here stretches the phrase into a seed, walks
m/44'/coin'/0'/0/0 and encodes the address for the selected coin. Any
failure along that path (checksum, invalid key material) is ok=False.
"""

from typing import List, Protocol, Sequence, Tuple

from mnemonic import Mnemonic
from bip_utils import Base58Decoder, Base58Encoder, Bip32KeyError, Bip44, Bip44Changes, Bip44Coins
from eth_account import Account

from seed_recovery.config import ConfigError

# derivation (m/44'/coin'/0'/0/0)
ACCOUNT_INDEX = 0
CHANGE = Bip44Changes.CHAIN_EXT
ADDRESS_INDEX = 0

TRON = "tron"
ETHEREUM = "ethereum"
COINS = {
    TRON: Bip44Coins.TRON,
    ETHEREUM: Bip44Coins.ETHEREUM,
}

TRON_PREFIX = 0x41
TRON_ADDRESS_LEN = 25   # prefix + 20-byte hash + 4-byte checksum
ETH_ADDRESS_LEN = 20


class DerivationOracle(Protocol):
    def derive(self, words: Sequence[str]) -> Tuple[bytes, bool]:
        ...


def english_wordlist() -> List[str]:
    return list(Mnemonic("english").wordlist)


class Bip44Oracle:
    def __init__(self, coin: str = TRON, verify_checksum: bool = False):
        if coin not in COINS:
            raise ConfigError(f"unsupported coin {coin!r}, choose one of: {', '.join(COINS)}")
        self.coin = coin
        self.verify_checksum = verify_checksum
        self._mnemo = Mnemonic("english")

    def derive(self, words: Sequence[str]) -> Tuple[bytes, bool]:
        phrase = " ".join(words)
        if self.verify_checksum and not self._mnemo.check(phrase):
            return b"", False

        try:
            seed_bytes = Mnemonic.to_seed(phrase, passphrase="")
            acc = (Bip44.FromSeed(seed_bytes, COINS[self.coin])
                   .Purpose().Coin().Account(ACCOUNT_INDEX)
                   .Change(CHANGE).AddressIndex(ADDRESS_INDEX))
            if self.coin == TRON:
                return Base58Decoder.Decode(acc.PublicKey().ToAddress()), True
            priv = acc.PrivateKey().Raw().ToBytes()
            return bytes.fromhex(Account.from_key(priv).address[2:]), True
        except (Bip32KeyError, ValueError):
            # derived key outside the curve order; not a usable phrase
            return b"", False


def decode_target(address: str, coin: str = TRON) -> bytes:
    """Decode a textual address into the bytes the oracle returns."""
    address = address.strip()
    if coin == TRON:
        try:
            raw = Base58Decoder.Decode(address)
        except ValueError:
            raise ConfigError(f"not a base58 address: {address!r}") from None
        if len(raw) != TRON_ADDRESS_LEN or raw[0] != TRON_PREFIX:
            raise ConfigError(f"not a Tron address: {address!r}")
        return raw

    if coin == ETHEREUM:
        hex_part = address[2:] if address.lower().startswith("0x") else address
        try:
            raw = bytes.fromhex(hex_part)
        except ValueError:
            raise ConfigError(f"not a hex address: {address!r}") from None
        if len(raw) != ETH_ADDRESS_LEN:
            raise ConfigError(f"Ethereum address must be {ETH_ADDRESS_LEN} bytes, got {len(raw)}")
        return raw

    raise ConfigError(f"unsupported coin {coin!r}")


def encode_address(raw: bytes, coin: str = TRON) -> str:
    if not raw:
        return "<none>"
    if coin == TRON:
        return Base58Encoder.Encode(raw)
    return "0x" + raw.hex()


def check_phrase(words: Sequence[str], oracle: DerivationOracle, target: bytes) -> Tuple[bytes, bool]:
    """Derive a fully known phrase once; (address, matched)."""
    address, ok = oracle.derive(list(words))
    return address, ok and address == target
