# =============================================================================
#  PoeRegistry — Proof-of-Existence claims registry, Algorand Smart Contract
#  -----------------------------------------------------------------------------
#  Standard  : ARC-4  (create_claim(byte[])void, revoke_claim(byte[])void,
#                      transfer_claim(byte[],address)void,
#                      get_claim(byte[])(address,uint64))
#  Language  : Algorand Python  →  compiled to AVM bytecode via PuyaPy
# =============================================================================
#
#  STORAGE MODEL
#  -------------
#  Uses Algorand Box Storage — a native key-value store on the AVM.
#
#    BoxMap<Bytes, ClaimRecord>
#    │
#    ├── Key   : "proofs" + fingerprint  (at most MAX_CLAIM_LENGTH bytes)
#    │
#    └── Value : ClaimRecord(owner: address, registered_at: uint64)
#                — owner is the sender of the create / transfer call,
#                  registered_at the round it was confirmed in
#
#  Each box occupies: 2500 + 400 × (key_length + 40) microALGO in MBR,
#  funded by the caller as part of the atomic transaction group.
#
#  REJECTION RULES
#  ---------------
#  Every check is an `assert` that runs before the first box write. A failed
#  assert rejects the whole transaction group: no box changes, no event log.
#  The assert message names the error kind:
#
#    ProofTooLong       fingerprint longer than MAX_CLAIM_LENGTH
#    ProofAlreadyExist  create_claim on an occupied fingerprint
#    ClaimNotExist      revoke / transfer / get on an empty fingerprint
#    NotClaimOwner      revoke / transfer by anyone but the recorded owner
#
# =============================================================================

from algopy import ARC4Contract, BoxMap, Bytes, Global, Txn, arc4, subroutine

from smart_contracts.poe_registry.constants import CLAIM_BOX_PREFIX, MAX_CLAIM_LENGTH


class ClaimRecord(arc4.Struct):
    owner: arc4.Address
    registered_at: arc4.UInt64


# ── Events (ARC-28) ───────────────────────────────────────────────────────────

class ClaimCreated(arc4.Struct):
    who: arc4.Address
    fingerprint: arc4.DynamicBytes


class ClaimRevoked(arc4.Struct):
    who: arc4.Address
    fingerprint: arc4.DynamicBytes


class ClaimTransferred(arc4.Struct):
    who: arc4.Address
    new_owner: arc4.Address
    fingerprint: arc4.DynamicBytes


class PoeRegistry(ARC4Contract):
    """
    On-chain registry mapping content fingerprints to their current owner.

    The caller is always Txn.sender and the height is always Global.round;
    the contract never takes either as an argument.
    """

    def __init__(self) -> None:
        self.proofs = BoxMap(Bytes, ClaimRecord, key_prefix=CLAIM_BOX_PREFIX)

    @arc4.abimethod
    def create_claim(self, fingerprint: arc4.DynamicBytes) -> None:
        """
        Register `fingerprint` for the sender at the current round.

        Length is checked before existence, so an overlong fingerprint is
        always ProofTooLong.
        """
        claim = fingerprint.native
        assert claim.length <= MAX_CLAIM_LENGTH, "ProofTooLong"
        assert claim not in self.proofs, "ProofAlreadyExist"

        self.proofs[claim] = ClaimRecord(
            owner=arc4.Address(Txn.sender),
            registered_at=arc4.UInt64(Global.round),
        )
        arc4.emit(ClaimCreated(who=arc4.Address(Txn.sender), fingerprint=fingerprint.copy()))

    @arc4.abimethod
    def revoke_claim(self, fingerprint: arc4.DynamicBytes) -> None:
        claim = fingerprint.native
        self._ensure_owner(claim)

        del self.proofs[claim]
        arc4.emit(ClaimRevoked(who=arc4.Address(Txn.sender), fingerprint=fingerprint.copy()))

    @arc4.abimethod
    def transfer_claim(self, fingerprint: arc4.DynamicBytes, new_owner: arc4.Address) -> None:
        """Hand the claim to `new_owner`. Owner and round are both rewritten, even on a transfer to self."""
        claim = fingerprint.native
        self._ensure_owner(claim)

        self.proofs[claim] = ClaimRecord(
            owner=new_owner.copy(),
            registered_at=arc4.UInt64(Global.round),
        )
        arc4.emit(
            ClaimTransferred(
                who=arc4.Address(Txn.sender),
                new_owner=new_owner.copy(),
                fingerprint=fingerprint.copy(),
            )
        )

    @arc4.abimethod(readonly=True)
    def get_claim(self, fingerprint: arc4.DynamicBytes) -> ClaimRecord:
        claim = fingerprint.native
        assert claim in self.proofs, "ClaimNotExist"
        return self.proofs[claim].copy()

    @subroutine
    def _ensure_owner(self, claim: Bytes) -> None:
        assert claim in self.proofs, "ClaimNotExist"
        assert self.proofs[claim].owner.native == Txn.sender, "NotClaimOwner"
