"""
Proof Route

Serves a recipient's committed allocation and sibling path from the
loaded allow-list or claims file. Proofs are only served while that
source matches the ledger's active commitment.
"""

from fastapi import APIRouter, Depends

from api.deps import ServiceState, get_state
from api.errors import NoAllowListError, StaleProofSourceError
from api.models.responses import ProofResponse
from core.allowlist import proof_from_claims_file
from core.crypto.hashing import to_hex

router = APIRouter(tags=["proofs"])


@router.get("/proof/{recipient}", response_model=ProofResponse)
def get_proof(recipient: str, state: ServiceState = Depends(get_state)) -> ProofResponse:
    if state.allowlist is not None:
        entry, proof = state.allowlist.proof_for_recipient(recipient)
        key, allocation = entry.recipient, entry.allocation
    elif state.claims_file is not None:
        key, file_entry, proof = proof_from_claims_file(state.claims_file, recipient)
        allocation = file_entry.allocation
    else:
        raise NoAllowListError()

    served_root = to_hex(proof.root)
    active = state.ledger.get_commitment()
    if active is not None and active.root != served_root:
        raise StaleProofSourceError(served_root, active.root)

    return ProofResponse(
        recipient=key,
        index=proof.index,
        allocation=list(allocation),
        leaf=to_hex(proof.leaf),
        proof=[to_hex(s) for s in proof.siblings],
        root=served_root,
    )
