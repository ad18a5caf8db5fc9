"""Read-only view of the deployed contracts, straight from algod's REST API."""

import base64
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import requests
from algosdk import encoding

from smart_contracts.number_ledger.constants import NUMBER_BOX_PREFIX
from smart_contracts.poe_registry.constants import CLAIM_BOX_PREFIX

logger = logging.getLogger(__name__)

# ClaimRecord ARC-4 encoding: 32-byte address + uint64
CLAIM_RECORD_LEN = 40


class ChainError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass(frozen=True)
class ClaimView:
    fingerprint: bytes
    owner: str
    registered_at: int
    # Round algod answered at; owner and registered_at are as of this round.
    round: Optional[int] = None


def claim_box_name(fingerprint: bytes) -> bytes:
    return CLAIM_BOX_PREFIX + bytes(fingerprint)


def number_box_name(index: int) -> bytes:
    return NUMBER_BOX_PREFIX + index.to_bytes(8, "big")


def decode_claim(fingerprint: bytes, value: bytes, round_: Optional[int] = None) -> ClaimView:
    if len(value) != CLAIM_RECORD_LEN:
        raise ChainError(f"claim box for {fingerprint.hex()} has {len(value)} bytes")
    return ClaimView(
        fingerprint=fingerprint,
        owner=encoding.encode_address(value[:32]),
        registered_at=int.from_bytes(value[32:], "big"),
        round=round_,
    )


def _error_message(resp) -> str:
    try:
        return resp.json().get("message", "")
    except ValueError:
        return resp.text


class AlgodReader:
    def __init__(self, algod_url: str, algod_token: str = "", timeout: float = 10, session=None) -> None:
        self.algod_url = algod_url.rstrip("/")
        self.headers = {"X-Algo-API-Token": algod_token} if algod_token else {}
        self.timeout = timeout
        self.http = session or requests

    def _request(self, method: str, path: str, allow_missing: bool = False, **kwargs):
        headers = dict(self.headers, **kwargs.pop("headers", {}))
        try:
            resp = getattr(self.http, method)(
                f"{self.algod_url}{path}", headers=headers, timeout=self.timeout, **kwargs
            )
        except requests.RequestException as e:
            raise ChainError(f"algod unreachable: {e}") from e

        if allow_missing and resp.status_code == 404:
            return None
        if resp.status_code != 200:
            raise ChainError(
                f"algod returned {resp.status_code} for {path}: {_error_message(resp)}",
                resp.status_code,
            )
        return resp.json()

    # ── chain status ─────────────────────────────────────────────────────────

    def last_round(self) -> int:
        return self._request("get", "/v2/status")["last-round"]

    def wait_for_block_after(self, round_: int) -> int:
        return self._request("get", f"/v2/status/wait-for-block-after/{round_}")["last-round"]

    def suggested_params(self) -> dict:
        return self._request("get", "/v2/transactions/params")

    def account(self, address: str) -> dict:
        return self._request("get", f"/v2/accounts/{address}")

    def send_raw(self, signed_group: bytes) -> str:
        body = self._request(
            "post",
            "/v2/transactions",
            data=signed_group,
            headers={"Content-Type": "application/x-binary"},
        )
        return body["txId"]

    # ── boxes ────────────────────────────────────────────────────────────────

    def box(self, app_id: int, name: bytes) -> Optional[Tuple[bytes, Optional[int]]]:
        """Box value and the round it was read at, or None if the box does not exist."""
        body = self._request(
            "get",
            f"/v2/applications/{app_id}/box",
            allow_missing=True,
            params={"name": "b64:" + base64.b64encode(name).decode()},
        )
        if body is None:
            return None
        return base64.b64decode(body.get("value", "")), body.get("round")

    def box_names(self, app_id: int) -> List[bytes]:
        body = self._request("get", f"/v2/applications/{app_id}/boxes")
        return [base64.b64decode(b["name"]) for b in body.get("boxes", [])]

    # ── contract views ───────────────────────────────────────────────────────

    def claim(self, app_id: int, fingerprint: bytes) -> Optional[ClaimView]:
        found = self.box(app_id, claim_box_name(fingerprint))
        if found is None:
            return None
        value, round_ = found
        return decode_claim(bytes(fingerprint), value, round_)

    def claims(self, app_id: int) -> List[ClaimView]:
        """Every claim box of the registry. Boxes deleted between listing and reading are skipped."""
        views = []
        names = [n for n in self.box_names(app_id) if n.startswith(CLAIM_BOX_PREFIX)]
        logger.info(f"[CHAIN] Found {len(names)} claim box(es) in App {app_id}")

        for name in names:
            view = self.claim(app_id, name[len(CLAIM_BOX_PREFIX):])
            if view is None:
                logger.info(f"[CHAIN] Box {name!r} disappeared before it was read")
                continue
            views.append(view)
        return views

    def number(self, app_id: int, index: int) -> int:
        found = self.box(app_id, number_box_name(index))
        if found is None:
            return 0
        value, _ = found
        return int.from_bytes(value, "big")
