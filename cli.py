#!/usr/bin/env python3
"""
devchain CLI

Command-line interface for the local development network.

Usage:
    # Run a script against a fresh, throwaway network
    python cli.py run scripts/deploy.py

    # Run a script against a named network
    python cli.py run scripts/deploy.py --network localhost

    # Keep a network alive and drive it interactively
    python cli.py node
"""

import argparse
import logging
import sys

from devchain import EventFilter, LedgerError
from devchain.config import CHAIN_ID, DEFAULT_NETWORK, NETWORKS, WEI_PER_ETHER
from devchain.network import get_ledger, get_network_config, run_script

logger = logging.getLogger(__name__)


class Node:
    """Persistent local network driven by stdin commands."""

    def __init__(self, network: str = "localhost"):
        self.network = network
        self.config = get_network_config(network)
        self.ledger = get_ledger(network)

    def run(self, stream=None):
        stream = stream or sys.stdin
        print(f"Started network at {self.config['url']} (chain id {self.config['chain_id']})")
        self._print_accounts()
        print("Type 'help' for commands.")

        for line in stream:
            if self.handle_command(line) is False:
                break

    def _print_accounts(self):
        print("Accounts")
        print("========")
        for i, address in enumerate(self.ledger.accounts):
            eth = self.ledger.get_balance(address) // WEI_PER_ETHER
            print(f"Account #{i}: {address} ({eth} ETH)")

    def _print_help(self):
        print("""
Available commands:
  accounts                       - List developer accounts
  balance <addr>                 - Show native and token balance of an address
  deploy [owner]                 - Deploy the example token
  transfer <from> <to> <amount>  - Transfer tokens
  send <from> <to> <wei>         - Send native currency
  mine [n]                       - Mine n empty blocks
  block <number>                 - Show block details
  events [from_addr]             - List Transfer events
  snapshot                       - Take a snapshot
  revert <id>                    - Revert to a snapshot
  help                           - Show this help
  exit / quit                    - Stop the node
""")

    def _resolve(self, value: str) -> str:
        # Accept "#3" as a shorthand for developer account 3
        if value.startswith("#"):
            return self.ledger.accounts[int(value[1:])]
        return value

    def handle_command(self, cmd: str):
        """Handle one command. Returns False to stop."""
        parts = cmd.strip().split()
        if not parts:
            return True

        command = parts[0].lower()
        args = parts[1:]

        if command in ("exit", "quit"):
            return False

        try:
            self._dispatch(command, args)
        except LedgerError as e:
            print(f"Error: {e}")
        except (ValueError, IndexError) as e:
            print(f"Invalid arguments: {e}")

        return True

    def _dispatch(self, command, args):
        ledger = self.ledger

        if command == "help":
            self._print_help()

        elif command == "accounts":
            self._print_accounts()

        elif command == "balance":
            if not args:
                print("Usage: balance <address>")
                return
            addr = self._resolve(args[0])
            print(f"Address: {addr}")
            print(f"  Balance: {ledger.get_balance(addr)} wei")
            print(f"  Nonce: {ledger.get_nonce(addr)}")
            if ledger.primary_token:
                token = ledger.get_token()
                print(f"  {token.symbol}: {token.balance_of(addr)}")

        elif command == "deploy":
            owner = self._resolve(args[0]) if args else None
            token = ledger.deploy_token(owner)
            print(f"Token {token.symbol} deployed at {token.address}")

        elif command == "transfer":
            if len(args) != 3:
                print("Usage: transfer <from> <to> <amount>")
                return
            result = ledger.transfer(self._resolve(args[0]), self._resolve(args[1]), int(args[2]))
            print(f"Tx {result.tx_hash} mined in block #{result.block_number}")

        elif command == "send":
            if len(args) != 3:
                print("Usage: send <from> <to> <wei>")
                return
            result = ledger.send_value(self._resolve(args[0]), self._resolve(args[1]), int(args[2]))
            print(f"Tx {result.tx_hash} mined in block #{result.block_number}")

        elif command == "mine":
            block = ledger.mine(int(args[0]) if args else 1)
            print(f"Chain height: {block.number}")

        elif command == "block":
            if not args:
                print("Usage: block <number>")
                return
            block = ledger.get_block(int(args[0]))
            if block is None:
                print(f"Block {args[0]} not found (height: {ledger.block_number})")
                return
            print(f"Block #{block.number}")
            print(f"  Hash: {block.hash}")
            print(f"  Parent: {block.parent_hash}")
            print(f"  Time: {block.timestamp}")
            print(f"  Txns: {len(block.transactions)}")

        elif command == "events":
            sender = self._resolve(args[0]) if args else None
            events = list(ledger.events(EventFilter(sender=sender)))
            if not events:
                print("No events")
            for event in events:
                print(f"  #{event.sequence} block {event.block_number} {event.kind}{event.args}")

        elif command == "snapshot":
            print(f"Snapshot: {ledger.snapshot()}")

        elif command == "revert":
            if not args:
                print("Usage: revert <id>")
                return
            ledger.revert(args[0])
            print(f"Reverted to {args[0]} (height: {ledger.block_number})")

        else:
            print(f"Unknown command: {command}. Type 'help' for commands.")


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="devchain local development network",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  devchain run scripts/deploy.py                     # Ephemeral network
  devchain run scripts/deploy.py --network localhost # Persistent network
  devchain node                                      # Chain id {CHAIN_ID}
        """
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run a script against a network")
    run_parser.add_argument("script", help="Path to a Python script")
    run_parser.add_argument(
        "--network",
        choices=sorted(NETWORKS),
        default=DEFAULT_NETWORK,
        help=f"Network to run on (default: {DEFAULT_NETWORK})"
    )

    subparsers.add_parser("node", help="Start a persistent network and read commands from stdin")

    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    level = logging.DEBUG if args.debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S"
    )

    if args.command == "run":
        try:
            run_script(args.script, network=args.network)
        except LedgerError as e:
            logger.error("Script failed: %s", e)
            return 1
        return 0

    Node().run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
