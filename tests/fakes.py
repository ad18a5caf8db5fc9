"""In-memory stand-ins for algod and the sum service."""

import base64

from algosdk import account, encoding

from smart_contracts.chain import claim_box_name, number_box_name

ALGOD_URL = "http://algod.test"
POE_APP_ID = 1001
NUMBERS_APP_ID = 1002


class FakeResponse:
    def __init__(self, status_code: int, payload=None):
        self.status_code = status_code
        self._payload = payload if payload is not None else {}
        self.text = str(self._payload)

    def json(self):
        return self._payload


class FakeAlgod:
    """Answers the algod REST paths AlgodReader uses, from in-memory boxes."""

    def __init__(self, round_: int = 100):
        self.round = round_
        self.boxes = {}
        # Listed by /boxes but gone by the time /box is read
        self.listed_only = {}
        self.sent = []
        self.requests = []

    # ── seeding ──────────────────────────────────────────────────────────────

    def put_claim(self, fingerprint: bytes, owner: str, registered_at: int, app_id: int = POE_APP_ID):
        value = encoding.decode_address(owner) + registered_at.to_bytes(8, "big")
        self.boxes[(app_id, claim_box_name(fingerprint))] = value

    def put_number(self, index: int, number: int, app_id: int = NUMBERS_APP_ID):
        self.boxes[(app_id, number_box_name(index))] = number.to_bytes(8, "big")

    def vanish(self, fingerprint: bytes, app_id: int = POE_APP_ID):
        """Drop a claim box after it was listed, as a revoke landing in between would."""
        name = claim_box_name(fingerprint)
        self.listed_only[(app_id, name)] = self.boxes.pop((app_id, name))

    # ── requests.Session surface ─────────────────────────────────────────────

    def get(self, url, headers=None, timeout=None, params=None):
        path = url[len(ALGOD_URL):]
        self.requests.append(("GET", path, params))

        if path == "/v2/status":
            return FakeResponse(200, {"last-round": self.round})
        if path.startswith("/v2/status/wait-for-block-after/"):
            self.round = max(self.round, int(path.rsplit("/", 1)[1]) + 1)
            return FakeResponse(200, {"last-round": self.round})
        if path == "/v2/transactions/params":
            return FakeResponse(200, {"fee": 0, "min-fee": 1000, "last-round": self.round})
        if path.startswith("/v2/accounts/"):
            return FakeResponse(200, {"address": path.rsplit("/", 1)[1], "amount": 1_000_000})
        if path.endswith("/boxes"):
            app_id = int(path.split("/")[3])
            names = [n for (a, n) in list(self.boxes) + list(self.listed_only) if a == app_id]
            return FakeResponse(200, {"boxes": [{"name": base64.b64encode(n).decode()} for n in names]})
        if path.endswith("/box"):
            app_id = int(path.split("/")[3])
            name = base64.b64decode(params["name"][len("b64:"):])
            value = self.boxes.get((app_id, name))
            if value is None:
                return FakeResponse(404, {"message": "box not found"})
            return FakeResponse(
                200,
                {"name": params["name"][4:], "round": self.round, "value": base64.b64encode(value).decode()},
            )
        return FakeResponse(404, {"message": f"unknown path {path}"})

    def post(self, url, headers=None, timeout=None, data=None):
        path = url[len(ALGOD_URL):]
        self.requests.append(("POST", path, None))
        if path == "/v2/transactions":
            if data == b"rejected":
                return FakeResponse(400, {"message": "logic eval error: assert failed"})
            self.sent.append(data)
            return FakeResponse(200, {"txId": f"TX{len(self.sent)}"})
        return FakeResponse(404, {"message": f"unknown path {path}"})


def new_address() -> str:
    _, address = account.generate_account()
    return address


class FakeSumService:
    """Replays `responses` in order; an Exception instance is raised instead of returned."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params, timeout))
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response
