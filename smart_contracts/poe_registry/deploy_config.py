import logging

import algokit_utils

logger = logging.getLogger(__name__)


def deploy(
    algorand: algokit_utils.AlgorandClient,
    deployer: algokit_utils.SigningAccount,
    app_spec: str,
) -> algokit_utils.AppClient:
    # Factory for the compiled PoeRegistry (ARC-56 spec)
    app_factory = algorand.client.get_app_factory(
        app_spec=app_spec,
        default_sender=deployer.address,
        default_signer=deployer.signer,
    )

    # Deploy the contract to the network
    app_client, _ = app_factory.deploy(
        on_schema_break=algokit_utils.OnSchemaBreak.AppendApp,
        on_update=algokit_utils.OnUpdate.AppendApp,
    )

    logger.info("🚀 PoE Registry successfully deployed!")
    logger.info(f"App ID: {app_client.app_id}")
    return app_client
