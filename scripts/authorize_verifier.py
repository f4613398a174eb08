"""
Authorize a verifier address on the DeepTrustVerification contract.

Run this when the server wallet differs from the deployer wallet. The
PRIVATE_KEY in the environment must belong to the contract owner.

    python -m scripts.authorize_verifier 0xVerifierAddress
"""

import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv

load_dotenv()

from app.config import settings  # noqa: E402
from app.core.errors import AdapterConfigurationAbsent, AdapterTerminalError  # noqa: E402
from app.integrations.chain import ChainLedgerClient  # noqa: E402

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def authorize(verifier: str) -> int:
    client = ChainLedgerClient.from_settings(settings)
    logger.info(f"Using account: {client.address}")
    logger.info(f"Contract address: {settings.contract_address}")
    logger.info(f"Authorizing verifier: {verifier}")

    try:
        tx_hash = await client.add_verifier(verifier)
    except AdapterConfigurationAbsent:
        logger.error("CONTRACT_ADDRESS and PRIVATE_KEY must both be set")
        return 1
    except AdapterTerminalError as e:
        logger.error(f"Authorization failed: {e.message}")
        logger.error("The PRIVATE_KEY must belong to the contract owner.")
        return 1

    logger.info(f"Transaction confirmed: {tx_hash}")
    authorized = await client.is_verifier(verifier)
    logger.info(f"Verification: {'Authorized' if authorized else 'NOT Authorized'}")
    return 0 if authorized else 1


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("verifier", help="Address to add to the authorized verifier set")
    args = parser.parse_args(argv)
    return asyncio.run(authorize(args.verifier))


if __name__ == "__main__":
    sys.exit(main())
