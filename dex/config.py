"""
Configuration loading and validation for the cross-DEX reserve scanner.
"""

import os
from decimal import Decimal
from typing import Any, Dict, List, Optional

import yaml

from .abi import MULTICALL2_ADDRESSES
from .cache import DEFAULT_NEGATIVE_TTL_SEC
from .exceptions import ConfigurationError
from .types import PairSpec, TokenRef, VenueConfig
from .utils import bps_to_fraction, safe_address


class ConfigError(ConfigurationError):
    """Raised when the config file is invalid or missing required fields."""

    pass


class ScanConfig:
    """
    Parsed and validated configuration for the reserve scanner.

    Attributes:
        poll_sec: Seconds between cycles
        once: If True, run a single cycle and exit
        trade_size: Fixed round-trip size in token A units
        max_concurrency: Max (chain, venue) units fetched at once
        negative_ttl_sec: Lifetime of "no pool" address cache entries
        output_path: Optional JSON-lines file for opportunities
        chains: Dict of {chain_id -> {rpc_url, rpc_url_env, multicall}}
        venues: List of VenueConfig
        pairs: Dict of {chain_id -> [PairSpec]}
    """

    def __init__(self, config_dict: Dict[str, Any]):
        """
        Parse and validate config from dictionary.

        Args:
            config_dict: Loaded YAML config

        Raises:
            ConfigError: If required fields missing or invalid
        """
        self.poll_sec: int = int(config_dict.get("poll_sec", 30))
        self.once: bool = bool(config_dict.get("once", False))
        self.trade_size: Decimal = Decimal(str(config_dict.get("trade_size", 1000)))
        if self.trade_size <= 0:
            raise ConfigError(f"trade_size must be positive, got {self.trade_size}")

        self.max_concurrency: int = int(config_dict.get("max_concurrency", 5))
        if self.max_concurrency < 1:
            raise ConfigError("max_concurrency must be at least 1")

        self.negative_ttl_sec: float = float(
            config_dict.get("negative_ttl_sec", DEFAULT_NEGATIVE_TTL_SEC)
        )
        self.output_path: Optional[str] = config_dict.get("output_path")

        self.chains: Dict[int, Dict[str, Any]] = self._parse_chains(
            config_dict.get("chains", {})
        )
        self.venues: List[VenueConfig] = self._parse_venues(
            self._get_required(config_dict, "venues", list)
        )
        self.pairs: Dict[int, List[PairSpec]] = self._parse_pairs(
            self._get_required(config_dict, "pairs", dict)
        )

        if not self.venues:
            raise ConfigError("At least one venue must be configured")

    @staticmethod
    def _get_required(d: Dict, key: str, expected_type: type) -> Any:
        """Get required config field with type validation."""
        if key not in d:
            raise ConfigError(f"Missing required config field: {key}")
        val = d[key]
        if not isinstance(val, expected_type):
            raise ConfigError(
                f"Config field '{key}' must be {expected_type.__name__}, got {type(val).__name__}"
            )
        return val

    @staticmethod
    def _parse_chains(chains_raw: Dict[Any, Any]) -> Dict[int, Dict[str, Any]]:
        """Parse per-chain RPC settings; completeness is checked on use."""
        if not isinstance(chains_raw, dict):
            raise ConfigError("chains must be a dict keyed by chain id")
        chains = {}
        for chain_id, info in chains_raw.items():
            if not isinstance(info, dict):
                raise ConfigError(f"Chain {chain_id} config must be a dict")
            chains[int(chain_id)] = {
                "rpc_url": info.get("rpc_url"),
                "rpc_url_env": info.get("rpc_url_env"),
                "multicall": info.get("multicall"),
            }
        return chains

    @staticmethod
    def _parse_venues(venues_raw: List[Any]) -> List[VenueConfig]:
        """Parse and validate venue list."""
        venues = []
        for i, venue in enumerate(venues_raw):
            if not isinstance(venue, dict):
                raise ConfigError(f"Venue config {i} must be a dict")

            name = venue.get("name")
            if not name:
                raise ConfigError(f"Venue config {i} missing 'name'")

            chain_id = venue.get("chain_id")
            if chain_id is None:
                raise ConfigError(f"Venue '{name}' missing 'chain_id'")

            factory = safe_address(venue.get("factory"))
            if factory is None:
                raise ConfigError(
                    f"Venue '{name}' has invalid factory address {venue.get('factory')!r}"
                )

            if "fee" in venue:
                fee = Decimal(str(venue["fee"]))
            elif "fee_bps" in venue:
                fee = bps_to_fraction(venue["fee_bps"])
            else:
                raise ConfigError(f"Venue '{name}' missing 'fee_bps'")
            if fee < 0 or fee >= 1:
                raise ConfigError(f"Venue '{name}' fee must be in [0, 1), got {fee}")

            venues.append(
                VenueConfig(name=name, chain_id=int(chain_id), factory=factory, fee=fee)
            )
        return venues

    @staticmethod
    def _parse_token(raw: Any, where: str) -> TokenRef:
        if isinstance(raw, str):
            return TokenRef(address=raw)
        if not isinstance(raw, dict) or "address" not in raw:
            raise ConfigError(f"{where} must be an address or a dict with 'address'")
        decimals = raw.get("decimals")
        return TokenRef(
            address=raw["address"],
            symbol=raw.get("symbol"),
            decimals=int(decimals) if decimals is not None else None,
        )

    @classmethod
    def _parse_pairs(cls, pairs_raw: Dict[Any, Any]) -> Dict[int, List[PairSpec]]:
        """Parse pairs keyed by chain id."""
        pairs: Dict[int, List[PairSpec]] = {}
        for chain_id, entries in pairs_raw.items():
            if not isinstance(entries, list):
                raise ConfigError(f"pairs for chain {chain_id} must be a list")
            specs = []
            for j, entry in enumerate(entries):
                if not isinstance(entry, dict):
                    raise ConfigError(f"Pair {j} on chain {chain_id} must be a dict")
                if "token0" not in entry or "token1" not in entry:
                    raise ConfigError(
                        f"Pair {j} on chain {chain_id} missing 'token0' or 'token1'"
                    )
                specs.append(
                    PairSpec(
                        token0=cls._parse_token(entry["token0"], f"pair {j} token0"),
                        token1=cls._parse_token(entry["token1"], f"pair {j} token1"),
                        pair_key=entry.get("pair_key"),
                    )
                )
            pairs[int(chain_id)] = specs
        return pairs

    @property
    def chain_ids(self) -> List[int]:
        """Chains with at least one venue, in first-seen order."""
        seen: List[int] = []
        for venue in self.venues:
            if venue.chain_id not in seen:
                seen.append(venue.chain_id)
        return seen

    def venues_for(self, chain_id: int) -> List[VenueConfig]:
        return [v for v in self.venues if v.chain_id == chain_id]

    def pairs_for(self, chain_id: int) -> List[PairSpec]:
        return self.pairs.get(chain_id, [])

    def rpc_url_for(self, chain_id: int) -> str:
        """
        RPC endpoint for a chain: explicit rpc_url, else the named env var.

        Raises:
            ConfigurationError: If no endpoint is configured for the chain
        """
        info = self.chains.get(chain_id, {})
        url = info.get("rpc_url")
        if not url and info.get("rpc_url_env"):
            url = os.getenv(info["rpc_url_env"])
        if not url:
            raise ConfigurationError(
                f"No RPC URL configured for chain {chain_id}", chain_id=chain_id
            )
        return url

    def multicall_for(self, chain_id: int) -> str:
        """
        Multicall2 address for a chain: explicit config, else the built-in table.

        Raises:
            ConfigurationError: If neither source has an address
        """
        info = self.chains.get(chain_id, {})
        addr = info.get("multicall") or MULTICALL2_ADDRESSES.get(chain_id)
        if not addr:
            raise ConfigurationError(
                f"No Multicall address configured for chain {chain_id}",
                chain_id=chain_id,
            )
        return addr


def load_config(config_path: str) -> ScanConfig:
    """
    Load and validate config from YAML file.

    Args:
        config_path: Path to config YAML file

    Returns:
        Validated ScanConfig instance

    Raises:
        ConfigError: If config invalid or file not found
    """
    if not os.path.exists(config_path):
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            config_dict = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML: {e}") from e

    if not isinstance(config_dict, dict):
        raise ConfigError("Config file must contain a YAML dictionary")

    return ScanConfig(config_dict)
