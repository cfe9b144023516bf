"""
Named networks.

`hardhat` is ephemeral: every lookup gets a fresh ledger that is thrown away
afterwards. `localhost` is persistent: one ledger is kept alive in the process
and shared by every caller until it exits.
"""
import logging
import runpy
import threading
from typing import Dict, Optional

from devchain.config import DEFAULT_NETWORK, NETWORKS
from devchain.errors import UnknownNetwork
from devchain.ledger import Ledger

logger = logging.getLogger(__name__)

_persistent: Dict[str, Ledger] = {}
_persistent_lock = threading.Lock()


def get_network_config(name: str) -> dict:
    if name not in NETWORKS:
        raise UnknownNetwork(f"Unknown network {name!r}. Available: {', '.join(sorted(NETWORKS))}")
    return NETWORKS[name]


def get_ledger(name: str = DEFAULT_NETWORK) -> Ledger:
    config = get_network_config(name)
    if not config["persistent"]:
        return Ledger(chain_id=config["chain_id"])

    with _persistent_lock:
        if name not in _persistent:
            _persistent[name] = Ledger(chain_id=config["chain_id"])
            logger.info("Started persistent network %s at %s (chain id %d)", name, config["url"], config["chain_id"])
        return _persistent[name]


def shutdown(name: Optional[str] = None):
    """Drop persistent ledgers (all of them when `name` is None)."""
    with _persistent_lock:
        if name is None:
            _persistent.clear()
        else:
            _persistent.pop(name, None)


def run_script(path: str, network: str = DEFAULT_NETWORK) -> dict:
    """
    Run a Python script with `ledger` and `network` in its globals.
    Returns the script's resulting globals.
    """
    ledger = get_ledger(network)
    logger.info("Running %s on network %s", path, network)
    return runpy.run_path(path, init_globals={"ledger": ledger, "network": network}, run_name="__main__")
