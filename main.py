import logging

from devchain import InsufficientBalance, Ledger

logger = logging.getLogger(__name__)


def deploy_token_fixture(ledger):
    owner, addr1, addr2 = ledger.accounts[:3]
    token = ledger.deploy_token(owner)
    return token, owner, addr1, addr2


def run_demo(ledger=None):
    ledger = ledger or Ledger()
    logger.info("Starting devchain walkthrough (chain id %d)", ledger.chain_id)

    # -------------------------------
    # Deployment
    # -------------------------------

    logger.info("[1] Deploy: owner deploys the token")
    token, owner, addr1, addr2 = ledger.load_fixture(deploy_token_fixture)
    logger.info("%s (%s) at %s, supply %d", token.name, token.symbol, token.address, token.total_supply)
    logger.info("Owner balance: %d", token.balance_of(owner))

    # -------------------------------
    # Transfers
    # -------------------------------

    logger.info("[2] Transfer: owner sends 50 tokens to addr1")
    token.transfer(owner, addr1, 50)

    logger.info("[3] Transfer: addr1 sends 50 tokens to addr2")
    token.transfer(addr1, addr2, 50)

    logger.info("[4] Transfer: addr1 tries to send 1 token it no longer has")
    try:
        token.transfer(addr1, owner, 1)
    except InsufficientBalance as e:
        logger.info("Rejected as expected: %s", e)

    for event in token.events():
        logger.info("Event #%d in block %d: %s", event.sequence, event.block_number, event.named_args())

    # -------------------------------
    # Fixture reload
    # -------------------------------

    logger.info("[5] Fixture: reloading reverts to the freshly deployed token")
    token, owner, addr1, addr2 = ledger.load_fixture(deploy_token_fixture)

    logger.info("[6] Final State Check")
    logger.info("Owner: %d, addr1: %d, addr2: %d",
                token.balance_of(owner), token.balance_of(addr1), token.balance_of(addr2))
    logger.info("Block number: %d, events: %d", ledger.block_number, len(ledger.event_log))
    return ledger


def main():
    logging.basicConfig(level=logging.INFO)
    run_demo()


if __name__ == "__main__":
    main()
