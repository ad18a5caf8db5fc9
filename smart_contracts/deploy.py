"""
Deploy both contracts from their compiled ARC-56 specs.

Compile first, then deploy:
    algokit compile py smart_contracts/poe_registry/contract.py --out-dir smart_contracts/artifacts/poe_registry
    algokit compile py smart_contracts/number_ledger/contract.py --out-dir smart_contracts/artifacts/number_ledger
    DEPLOYER_MNEMONIC="word1 word2 ..." python -m smart_contracts.deploy

ALGOD_SERVER / ALGOD_TOKEN pick the network (see AlgorandClient.from_environment);
with neither set this targets LocalNet and the LocalNet dispenser.
"""

import logging
import os
from pathlib import Path

from algokit_utils import AlgorandClient

from smart_contracts.number_ledger import deploy_config as number_ledger_deploy
from smart_contracts.poe_registry import deploy_config as poe_registry_deploy

logger = logging.getLogger(__name__)

ARTIFACTS = Path(__file__).parent / "artifacts"

CONTRACTS = [
    ("poe_registry", "PoeRegistry", poe_registry_deploy.deploy),
    ("number_ledger", "NumberLedger", number_ledger_deploy.deploy),
]


def read_app_spec(folder: str, name: str) -> str:
    path = ARTIFACTS / folder / f"{name}.arc56.json"
    if not path.exists():
        raise FileNotFoundError(f"{path} not found. Run `algokit compile py` first.")
    return path.read_text()


def main() -> dict:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")

    if os.getenv("ALGOD_SERVER"):
        algorand = AlgorandClient.from_environment()
        deployer = algorand.account.from_environment("DEPLOYER")
    else:
        logger.info("Connecting to LocalNet...")
        algorand = AlgorandClient.default_localnet()
        deployer = algorand.account.localnet_dispenser()
    logger.info(f"Deployer: {deployer.address}")

    app_ids = {}
    for folder, name, deploy in CONTRACTS:
        logger.info(f"Deploying {name}...")
        app_client = deploy(algorand, deployer, read_app_spec(folder, name))
        app_ids[name] = app_client.app_id

    print("\n" + "=" * 40)
    print(f"POE_APP_ID={app_ids['PoeRegistry']}")
    print(f"NUMBERS_APP_ID={app_ids['NumberLedger']}")
    print("=" * 40 + "\n")
    return app_ids


if __name__ == "__main__":
    main()
