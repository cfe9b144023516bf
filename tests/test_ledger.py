import unittest

from devchain import (
    InsufficientBalance,
    InvalidAddress,
    InvalidAmount,
    InvalidSignature,
    Ledger,
    LedgerError,
    Signer,
    Transaction,
    UnknownAccount,
    UnknownToken,
)
from devchain.config import INITIAL_BALANCE, TOKEN_NAME, TOKEN_SUPPLY, TOKEN_SYMBOL


class TestToken(unittest.TestCase):

    def setUp(self):
        self.ledger = Ledger(account_count=5)
        self.owner, self.addr1, self.addr2 = self.ledger.accounts[:3]
        self.token = self.ledger.deploy_token(self.owner)

    def test_deployment(self):
        """Whole supply goes to the deployer."""
        self.assertEqual(self.token.name, TOKEN_NAME)
        self.assertEqual(self.token.symbol, TOKEN_SYMBOL)
        self.assertEqual(self.token.owner, self.owner)
        self.assertEqual(self.token.total_supply, TOKEN_SUPPLY)
        self.assertEqual(self.token.balance_of(self.owner), TOKEN_SUPPLY)
        self.assertEqual(self.ledger.primary_token, self.token.address)
        self.assertEqual(self.ledger.block_number, 1)
        self.assertEqual(self.ledger.get_nonce(self.owner), 1)
        self.assertEqual(len(self.ledger.event_log), 0)

    def test_transfer_example(self):
        result = self.token.transfer(self.owner, self.addr1, 50)

        self.assertEqual(self.token.balance_of(self.owner), 999_950)
        self.assertEqual(self.token.balance_of(self.addr1), 50)
        self.assertEqual(result.sender_balance, 999_950)
        self.assertEqual(result.recipient_balance, 50)
        self.assertEqual(result.block_number, 2)

        events = list(self.ledger.events())
        self.assertEqual(len(events), 1)
        self.assertEqual(events[0].kind, "Transfer")
        self.assertEqual(events[0].args, (self.owner, self.addr1, 50))
        self.assertEqual(events[0], result.event)
        self.assertEqual(events[0].tx_hash, result.tx_hash)
        self.assertEqual(events[0].address, self.token.address)

    def test_insufficient_balance_example(self):
        """addr1 has no tokens; the transfer fails and nothing changes."""
        height = self.ledger.block_number

        with self.assertRaises(InsufficientBalance):
            self.token.transfer(self.addr1, self.owner, 1)

        self.assertEqual(self.token.balance_of(self.addr1), 0)
        self.assertEqual(self.token.balance_of(self.owner), TOKEN_SUPPLY)
        self.assertEqual(self.ledger.block_number, height)
        self.assertEqual(self.ledger.get_nonce(self.addr1), 0)
        self.assertEqual(len(self.ledger.event_log), 0)

    def test_transfer_more_than_balance(self):
        self.token.transfer(self.owner, self.addr1, 50)
        with self.assertRaises(InsufficientBalance):
            self.token.transfer(self.addr1, self.addr2, 51)
        self.assertEqual(self.token.balance_of(self.addr1), 50)
        self.assertEqual(self.token.balance_of(self.addr2), 0)

    def test_balance_deltas(self):
        for sender, recipient, amount in [
            (self.owner, self.addr1, 1000),
            (self.addr1, self.addr2, 400),
            (self.addr2, self.owner, 399),
            (self.addr1, self.addr1, 600),
        ]:
            sender_before = self.token.balance_of(sender)
            recipient_before = self.token.balance_of(recipient)
            self.token.transfer(sender, recipient, amount)
            if sender == recipient:
                self.assertEqual(self.token.balance_of(sender), sender_before)
                continue
            self.assertEqual(self.token.balance_of(sender) + amount, sender_before)
            self.assertEqual(self.token.balance_of(recipient) - amount, recipient_before)

    def test_total_supply_invariant(self):
        accounts = self.ledger.accounts
        for i in range(20):
            sender = accounts[i % 3]
            recipient = accounts[(i + 1) % len(accounts)]
            try:
                self.token.transfer(sender, recipient, 7 * (i + 1))
            except InsufficientBalance:
                pass
            self.assertEqual(self.ledger.state.total_supply(self.token.address), TOKEN_SUPPLY)

    def test_invalid_amounts(self):
        for amount in [0, -1, 1.5, True]:
            with self.assertRaises(InvalidAmount):
                self.token.transfer(self.owner, self.addr1, amount)
        # InvalidAmount is an InsufficientBalance
        with self.assertRaises(InsufficientBalance):
            self.token.transfer(self.owner, self.addr1, 0)
        self.assertEqual(self.token.balance_of(self.owner), TOKEN_SUPPLY)

    def test_invalid_recipient(self):
        with self.assertRaises(InvalidAddress):
            self.token.transfer(self.owner, "0xnope", 1)
        self.assertEqual(self.ledger.get_nonce(self.owner), 1)

    def test_second_token_is_independent(self):
        other = self.ledger.deploy_token(self.addr1, "Other", "OTH", 10)
        self.assertNotEqual(other.address, self.token.address)
        self.assertEqual(self.ledger.primary_token, self.token.address)

        other.transfer(self.addr1, self.owner, 3)
        self.assertEqual(other.balance_of(self.owner), 3)
        self.assertEqual(self.token.balance_of(self.owner), TOKEN_SUPPLY)
        self.assertEqual(len(list(other.events())), 1)
        self.assertEqual(len(list(self.token.events())), 0)

    def test_unknown_token(self):
        with self.assertRaises(UnknownToken):
            self.ledger.transfer(self.owner, self.addr1, 1, token="0x" + "22" * 20)

    def test_invalid_supply(self):
        with self.assertRaises(InvalidAmount):
            self.ledger.deploy_token(self.addr1, "Bad", "BAD", 0)


class TestLedger(unittest.TestCase):

    def setUp(self):
        self.ledger = Ledger(account_count=3)
        self.alice, self.bob, self.carol = self.ledger.accounts

    def test_genesis(self):
        self.assertEqual(self.ledger.block_number, 0)
        self.assertEqual(len(self.ledger.chain), 1)
        for address in self.ledger.accounts:
            self.assertEqual(self.ledger.get_balance(address), INITIAL_BALANCE)

    def test_no_token_deployed(self):
        with self.assertRaises(UnknownToken):
            self.ledger.transfer(self.alice, self.bob, 1)

    def test_send_value(self):
        result = self.ledger.send_value(self.alice, self.bob, 40)
        self.assertEqual(self.ledger.get_balance(self.alice), INITIAL_BALANCE - 40)
        self.assertEqual(self.ledger.get_balance(self.bob), INITIAL_BALANCE + 40)
        self.assertEqual(result.sender_balance, INITIAL_BALANCE - 40)
        self.assertIsNone(result.event)
        self.assertEqual(len(self.ledger.event_log), 0)

    def test_send_value_insufficient(self):
        with self.assertRaises(InsufficientBalance):
            self.ledger.send_value(self.alice, self.bob, INITIAL_BALANCE + 1)
        self.assertEqual(self.ledger.get_balance(self.alice), INITIAL_BALANCE)

    def test_one_block_per_transaction(self):
        self.ledger.send_value(self.alice, self.bob, 1)
        self.ledger.send_value(self.bob, self.carol, 1)
        self.assertEqual(self.ledger.block_number, 2)

        block = self.ledger.get_block(2)
        self.assertEqual(block.parent_hash, self.ledger.get_block(1).hash)
        self.assertGreater(block.timestamp, self.ledger.get_block(1).timestamp)
        self.assertEqual(len(block.transactions), 1)
        tx = block.transactions[0]
        self.assertIs(self.ledger.get_transaction(tx.hash()), tx)
        self.assertIsNone(self.ledger.get_block(3))

    def test_mine_empty_blocks(self):
        block = self.ledger.mine(3)
        self.assertEqual(block.number, 3)
        self.assertEqual(block.transactions, [])
        with self.assertRaises(ValueError):
            self.ledger.mine(0)

    def test_unknown_sender(self):
        stranger = Signer.generate().address
        with self.assertRaises(UnknownAccount):
            self.ledger.send_value(stranger, self.alice, 1)

    def test_impersonation(self):
        stranger = Signer.generate().address
        self.ledger.set_balance(stranger, 100)
        self.ledger.impersonate(stranger)

        self.ledger.send_value(stranger, self.alice, 60)
        self.assertEqual(self.ledger.get_balance(stranger), 40)

        self.ledger.stop_impersonating(stranger)
        with self.assertRaises(UnknownAccount):
            self.ledger.send_value(stranger, self.alice, 1)

    def test_external_signed_transaction(self):
        outsider = Signer.generate()
        self.ledger.set_balance(outsider.address, 10)

        tx = Transaction(outsider.address, self.alice, 10, 0)
        tx.sign(outsider)
        block, events = self.ledger.send_transaction(tx)

        self.assertEqual(block.number, 1)
        self.assertEqual(events, [])
        self.assertEqual(self.ledger.get_balance(outsider.address), 0)
        self.assertEqual(self.ledger.get_nonce(outsider.address), 1)

    def test_bad_signature_rejected(self):
        outsider = Signer.generate()
        self.ledger.set_balance(outsider.address, 10)
        tx = Transaction(outsider.address, self.alice, 5, 0)
        tx.sign(outsider)
        tx.amount = 10

        with self.assertRaises(InvalidSignature):
            self.ledger.send_transaction(tx)
        self.assertEqual(self.ledger.get_balance(outsider.address), 10)

    def test_bad_nonce_rejected(self):
        signer = self.ledger.get_signer(0)
        tx = Transaction(signer.address, self.bob, 1, 5)
        tx.sign(signer)
        with self.assertRaises(LedgerError):
            self.ledger.send_transaction(tx)
        self.assertEqual(self.ledger.block_number, 0)

    def test_replay_rejected(self):
        signer = self.ledger.get_signer(self.alice)
        tx = Transaction(signer.address, self.bob, 1, 0)
        tx.sign(signer)
        self.ledger.send_transaction(tx)
        with self.assertRaises(LedgerError):
            self.ledger.send_transaction(tx)
        self.assertEqual(self.ledger.get_balance(self.bob), INITIAL_BALANCE + 1)

    def _signed_call(self, receiver, data):
        outsider = Signer.generate()
        tx = Transaction(outsider.address, receiver, 0, 0, data=data)
        tx.sign(outsider)
        return tx

    def test_malformed_call_data_rejected(self):
        token = self.ledger.deploy_token(self.alice)
        height = self.ledger.block_number
        for receiver, data in [
            (self.alice, "transfer"),
            (None, {"method": "deploy", "args": ["x"]}),
            (None, {"method": "deploy", "args": "abc"}),
            (token.address, {"method": "transfer", "args": [self.bob]}),
            (token.address, {"method": "transfer", "args": [self.bob, 1, 2]}),
        ]:
            tx = self._signed_call(receiver, data)
            with self.assertLogs("devchain.ledger", level="WARNING"):
                with self.assertRaises(LedgerError) as cm:
                    self.ledger.send_transaction(tx)
            self.assertIn("Malformed call data", str(cm.exception))
        self.assertEqual(self.ledger.block_number, height)

    def test_deploy_without_accounts(self):
        ledger = Ledger(account_count=0)
        with self.assertRaises(UnknownAccount):
            ledger.deploy_token()

    def test_reset(self):
        self.ledger.deploy_token(self.alice)
        self.ledger.send_value(self.alice, self.bob, 1)
        snapshot_id = self.ledger.snapshot()

        self.ledger.reset()

        self.assertEqual(self.ledger.block_number, 0)
        self.assertIsNone(self.ledger.primary_token)
        self.assertEqual(self.ledger.get_balance(self.alice), INITIAL_BALANCE)
        self.assertFalse(self.ledger.snapshots.has_snapshot(snapshot_id))


if __name__ == '__main__':
    unittest.main()
