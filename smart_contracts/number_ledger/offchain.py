"""
Offchain worker for the number ledger.

Runs in its own process, outside the contract. For every new round it works
out the number for that round (locally, or from an external sum service) and
submits it as an ordinary signed `save_number` app call, once per local
account. Nothing here is guaranteed to run, or to run exactly once.

Usage:
    NUMBERS_APP_ID=... OFFCHAIN_MNEMONICS="word1 word2 ..." python -m smart_contracts.number_ledger.offchain
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence

import requests
from algosdk import account, mnemonic
from algosdk.abi import Method
from algosdk.atomic_transaction_composer import (
    AccountTransactionSigner,
    AtomicTransactionComposer,
)
from algosdk.v2client import algod

from smart_contracts.chain import AlgodReader, ChainError, number_box_name
from smart_contracts.config import Settings, load_settings

logger = logging.getLogger(__name__)

U64_MAX = 2**64 - 1
SAVE_NUMBER = Method.from_signature("save_number(uint64,uint64)void")


class OffchainError(Exception):
    pass


@dataclass(frozen=True)
class SubmitResult:
    sender: str
    tx_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Signer:
    """Local keystore: every account it holds signs and submits the same call."""

    def __init__(self, algod_client, private_keys: Sequence[str], wait_rounds: int = 4) -> None:
        self.algod_client = algod_client
        self.accounts = [(account.address_from_private_key(pk), pk) for pk in private_keys]
        self.wait_rounds = wait_rounds

    @classmethod
    def from_mnemonics(cls, algod_client, mnemonics: Sequence[str]) -> "Signer":
        return cls(algod_client, [mnemonic.to_private_key(m) for m in mnemonics])

    def can_sign(self) -> bool:
        return bool(self.accounts)

    def send_signed_transaction(self, app_id: int, index: int, number: int) -> List[SubmitResult]:
        results = []
        for address, private_key in self.accounts:
            try:
                atc = AtomicTransactionComposer()
                atc.add_method_call(
                    app_id=app_id,
                    method=SAVE_NUMBER,
                    sender=address,
                    sp=self.algod_client.suggested_params(),
                    signer=AccountTransactionSigner(private_key),
                    method_args=[index, number],
                    boxes=[(0, number_box_name(index))],
                )
                response = atc.execute(self.algod_client, self.wait_rounds)
                results.append(SubmitResult(sender=address, tx_id=response.tx_ids[0]))
            except Exception as e:
                results.append(SubmitResult(sender=address, error=str(e)))
        return results


def next_number(latest: int, index: int) -> int:
    """latest + (index + 1)^2, saturating at the u64 ceiling."""
    return min(latest + (index + 1) ** 2, U64_MAX)


def fetch_number(
    url: str,
    index: int,
    timeout_ms: int = 5000,
    max_retries: int = 2,
    session: Optional[requests.Session] = None,
) -> int:
    """
    GET `<url>?n=<index>` and return the `sum` field of the JSON body.

    Each attempt gets its own deadline. Transport errors, non-200 responses and
    malformed bodies all count as a failed attempt; after `max_retries` extra
    attempts the last failure is raised as OffchainError.
    """
    http = session or requests
    timeout = timeout_ms / 1000.0
    last_error = "no attempt made"

    for attempt in range(1, max_retries + 2):
        try:
            resp = http.get(url, params={"n": index}, timeout=timeout)
        except requests.RequestException as e:
            last_error = f"request failed: {e}"
            logger.warning(f"[OFFCHAIN] Attempt {attempt} for n={index}: {last_error}")
            continue

        if resp.status_code != 200:
            last_error = f"unexpected status code: {resp.status_code}"
            logger.warning(f"[OFFCHAIN] Attempt {attempt} for n={index}: {last_error}")
            continue

        try:
            total = resp.json()["sum"]
        except (ValueError, KeyError, TypeError) as e:
            last_error = f"malformed body: {e!r}"
            logger.warning(f"[OFFCHAIN] Attempt {attempt} for n={index}: {last_error}")
            continue

        if isinstance(total, bool) or not isinstance(total, int) or not 0 <= total <= U64_MAX:
            last_error = f"sum out of range: {total!r}"
            logger.warning(f"[OFFCHAIN] Attempt {attempt} for n={index}: {last_error}")
            continue

        logger.info(f"[OFFCHAIN] Got sum {total} for n={index}")
        return total

    raise OffchainError(f"failed to fetch number for n={index}: {last_error}")


class OffchainWorker:
    def __init__(
        self,
        chain: AlgodReader,
        signer: Signer,
        app_id: int,
        sum_service_url: str = "",
        timeout_ms: int = 5000,
        max_retries: int = 2,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.chain = chain
        self.signer = signer
        self.app_id = app_id
        self.sum_service_url = sum_service_url
        self.timeout_ms = timeout_ms
        self.max_retries = max_retries
        self.session = session

    def run(self, block_number: int) -> List[SubmitResult]:
        """Handle one round. Failures are logged, never raised."""
        logger.info(f"[OFFCHAIN] Entering offchain worker for round {block_number}")
        try:
            return self.fetch_number_and_signed(block_number)
        except (OffchainError, ChainError) as e:
            logger.error(f"[OFFCHAIN] Submit signed: error happened: {e}")
            return []

    def fetch_number_and_signed(self, block_number: int) -> List[SubmitResult]:
        if not self.signer.can_sign():
            raise OffchainError("No local accounts available. Set OFFCHAIN_MNEMONICS.")

        index = block_number
        latest = self.chain.number(self.app_id, index - 1) if index > 0 else 0

        if self.sum_service_url:
            number = fetch_number(
                self.sum_service_url,
                index,
                timeout_ms=self.timeout_ms,
                max_retries=self.max_retries,
                session=self.session,
            )
        else:
            number = next_number(latest, index)

        results = self.signer.send_signed_transaction(self.app_id, index, number)
        for result in results:
            if result.ok:
                logger.info(
                    f"[OFFCHAIN] Submit signed: [{result.sender}] submitted number {number} in {result.tx_id}"
                )
            else:
                logger.error(f"[OFFCHAIN] Submit signed: [{result.sender}] failed to submit: {result.error}")
        return results

    def serve(self, start_round: Optional[int] = None, max_rounds: Optional[int] = None, retry_delay: float = 1.0) -> int:
        """Run once per new round until `max_rounds` rounds were handled (forever if None)."""
        last = self.chain.last_round() if start_round is None else start_round
        handled = 0
        while max_rounds is None or handled < max_rounds:
            try:
                current = self.chain.wait_for_block_after(last)
            except ChainError as e:
                logger.warning(f"[OFFCHAIN] Waiting for round after {last} failed: {e}")
                time.sleep(retry_delay)
                continue
            for block_number in range(last + 1, current + 1):
                if max_rounds is not None and handled >= max_rounds:
                    break
                self.run(block_number)
                handled += 1
            last = current
        return handled


def build_worker(settings: Settings, session: Optional[requests.Session] = None) -> OffchainWorker:
    algod_client = algod.AlgodClient(settings.algod_token, settings.algod_url)
    chain = AlgodReader(settings.algod_url, settings.algod_token, session=session)
    return OffchainWorker(
        chain,
        Signer.from_mnemonics(algod_client, settings.offchain_mnemonics),
        settings.numbers_app_id,
        sum_service_url=settings.sum_service_url,
        timeout_ms=settings.offchain_http_timeout_ms,
        max_retries=settings.offchain_max_retries,
        session=session,
    )


def main() -> None:
    settings = load_settings()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    if not settings.numbers_app_id:
        raise SystemExit("ERROR: Set NUMBERS_APP_ID to the deployed NumberLedger app id.")

    worker = build_worker(settings)
    logger.info(f"[OFFCHAIN] Serving App {settings.numbers_app_id} with {len(worker.signer.accounts)} account(s)")
    worker.serve()


if __name__ == "__main__":
    main()
