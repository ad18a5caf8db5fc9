import logging
from typing import Optional

from algosdk import encoding
from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware

from api.error_handlers import ApiError, register_error_handlers
from smart_contracts.chain import AlgodReader, ClaimView
from smart_contracts.config import Settings, load_settings
from smart_contracts.number_ledger.offchain import U64_MAX
from smart_contracts.poe_registry.constants import MAX_CLAIM_LENGTH

logger = logging.getLogger(__name__)


def parse_fingerprint(raw: str) -> bytes:
    # Hex length is bounded before decoding; anything longer can never be a claim.
    if len(raw) > 2 * MAX_CLAIM_LENGTH:
        raise ApiError(
            "ProofTooLong",
            f"fingerprint is longer than {MAX_CLAIM_LENGTH} bytes",
            400,
        )
    try:
        return bytes.fromhex(raw)
    except ValueError:
        raise ApiError("InvalidFingerprint", f"fingerprint is not hex: {raw!r}", 400) from None


def parse_address(raw: str) -> str:
    if not encoding.is_valid_address(raw):
        raise ApiError("InvalidAccount", f"not an Algorand address: {raw!r}", 400)
    return raw


def claim_to_json(view: ClaimView) -> dict:
    return {
        "fingerprint": view.fingerprint.hex(),
        "owner": view.owner,
        "registered_at": view.registered_at,
        "round": view.round,
    }


def create_app(settings: Optional[Settings] = None, reader: Optional[AlgodReader] = None) -> FastAPI:
    """
    Read-only view of the registry and the number ledger, plus an algod relay.

    Writes are ARC-4 app calls signed by the caller's wallet and submitted
    through POST /algod/transactions; every read answers from a single algod
    response, so there is no shared state to guard here.
    """
    settings = settings or load_settings()
    reader = reader or AlgodReader(settings.algod_url, settings.algod_token)

    def require_app(app_id: int, name: str) -> int:
        if not app_id:
            raise ApiError("NotDeployed", f"{name} app id is not configured", 503)
        return app_id

    app = FastAPI(title="PoE Registry API")
    app.state.settings = settings
    app.state.reader = reader
    logger.info(
        f"[API] Reading App {settings.poe_app_id} (claims) and App {settings.numbers_app_id} (numbers)"
        f" from {settings.algod_url}"
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    @app.get("/")
    def root():
        return {
            "status": "ok",
            "message": "PoE Registry API is running",
            "poe_app_id": settings.poe_app_id,
            "numbers_app_id": settings.numbers_app_id,
            "max_claim_length": MAX_CLAIM_LENGTH,
            "endpoints": ["/claims", "/numbers/{index}", "/algod/params", "/algod/transactions"],
        }

    @app.get("/claims")
    def list_claims():
        """Every claim, read live from the registry's boxes."""
        app_id = require_app(settings.poe_app_id, "PoeRegistry")
        views = reader.claims(app_id)
        return {
            "count": len(views),
            "app_id": app_id,
            "claims": [claim_to_json(v) for v in views],
        }

    @app.get("/claims/{fingerprint}")
    def get_claim(fingerprint: str):
        key = parse_fingerprint(fingerprint)
        app_id = require_app(settings.poe_app_id, "PoeRegistry")
        view = reader.claim(app_id, key)
        if view is None:
            raise ApiError("ClaimNotExist", f"No claim for {key.hex()}", 404)
        return claim_to_json(view)

    @app.get("/numbers/{index}")
    def get_number(index: int):
        if not 0 <= index <= U64_MAX:
            raise ApiError("InvalidIndex", f"index out of range: {index}", 400)
        app_id = require_app(settings.numbers_app_id, "NumberLedger")
        return {"index": index, "number": reader.number(app_id, index)}

    @app.get("/algod/params")
    def algod_params():
        """Proxy: suggested transaction params for wallets building an app call."""
        return reader.suggested_params()

    @app.get("/algod/account/{address}")
    def algod_account(address: str):
        return reader.account(parse_address(address))

    @app.post("/algod/transactions")
    async def send_transactions(request: Request):
        """Relay a msgpack-encoded signed transaction group to algod."""
        data = await request.body()
        if not data:
            raise ApiError("EmptyTransaction", "request body must hold a signed transaction group", 400)
        tx_id = await run_in_threadpool(reader.send_raw, data)
        logger.info(f"[API] Relayed transaction {tx_id}")
        return {"txId": tx_id}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
