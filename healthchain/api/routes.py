"""
API Routes for the HealthInsureChain ledger

Command endpoints (each appends at most a few blocks):
- POST /policies            - Issue a policy
- POST /claims              - Submit a claim for verification
- POST /rewards             - Grant loyalty tokens
- POST /data-sharing        - Record a data exchange between organizations

Query endpoints (projections over the chain):
- GET /patients/{id}/record - Policies, claims, rewards and token balance
- GET /analytics            - Chain-wide counters
- GET /chain/validity       - Integrity check with first violation
- GET /chain/blocks         - Block summaries
- GET /chain/export         - Full chain, for offline verification
- GET /organizations        - Organization registry
- GET /claims/{id}          - A claim, including ones rejected off-chain
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel

from ..core import HealthInsureChain, ValidationError
from ..core.projections import ChainAnalytics, PatientRecord
from ..schemas import (
    Claim,
    IssuePolicyRequest,
    OrganizationType,
    RewardRequest,
    ShareDataRequest,
    SubmitClaimRequest,
)


router = APIRouter()


# ============================================================
# Dependency Injection
# ============================================================

def get_chain(request: Request) -> HealthInsureChain:
    """The facade created by the application lifespan."""
    return request.app.state.chain


# ============================================================
# Response Models
# ============================================================

class PolicyIssuedResponse(BaseModel):
    policy_id: str
    policy_hash: str


class BlockResponse(BaseModel):
    index: int
    kind: str
    hash: str
    previous_hash: str
    nonce: int
    timestamp: datetime


class ShareDataResponse(BaseModel):
    shared: bool


class ValidityResponse(BaseModel):
    valid: bool
    block_count: int
    first_invalid_index: Optional[int] = None
    reason: Optional[str] = None


class OrganizationResponse(BaseModel):
    id: str
    name: str
    type: OrganizationType
    permissions: list[str]


class TokenBalanceResponse(BaseModel):
    address: str
    balance: int
    symbol: str
    total_supply: int


# ============================================================
# Command Endpoints
# ============================================================

@router.post(
    "/policies",
    response_model=PolicyIssuedResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Commands"],
    summary="Issue a policy",
)
def issue_policy(
    request: IssuePolicyRequest,
    chain: HealthInsureChain = Depends(get_chain),
):
    """Register a policy and commit it as a POLICY block."""
    try:
        policy_hash = chain.issue_policy(request)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return PolicyIssuedResponse(
        policy_id=request.policy_id,
        policy_hash=policy_hash,
    )


@router.post(
    "/claims",
    response_model=Claim,
    status_code=status.HTTP_201_CREATED,
    tags=["Commands"],
    summary="Submit a claim",
)
def submit_claim(
    request: SubmitClaimRequest,
    chain: HealthInsureChain = Depends(get_chain),
):
    """
    Verify a claim and commit it.

    Claims failing a hard rule are not committed; the response is 422
    with the rejection reason.
    """
    try:
        claim = chain.submit_claim(request)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    if claim is None:
        rejected = chain.get_claim(request.claim_id)
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "claim_id": request.claim_id,
                "status": rejected.status.value if rejected else "REJECTED",
                "reason": rejected.rejection_reason if rejected else None,
            },
        )

    # Large claims are archived alongside the on-chain record
    chain.store_large_claim(claim)
    return claim


@router.post(
    "/rewards",
    response_model=BlockResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Commands"],
    summary="Grant loyalty tokens",
)
def reward_tokens(
    request: RewardRequest,
    chain: HealthInsureChain = Depends(get_chain),
):
    block = chain.reward_loyalty_tokens(request.patient_id, request.amount, request.reason)
    return BlockResponse(**block.summary())


@router.post(
    "/data-sharing",
    response_model=ShareDataResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Commands"],
    summary="Share data between organizations",
)
def share_data(
    request: ShareDataRequest,
    chain: HealthInsureChain = Depends(get_chain),
):
    shared = chain.share_data_between_orgs(
        request.from_org,
        request.to_org,
        request.data_type,
        request.data_hash,
    )
    if not shared:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Invalid organization",
        )
    return ShareDataResponse(shared=True)


# ============================================================
# Query Endpoints
# ============================================================

@router.get(
    "/patients/{patient_id}/record",
    response_model=PatientRecord,
    tags=["Queries"],
)
def get_patient_record(
    patient_id: str,
    chain: HealthInsureChain = Depends(get_chain),
):
    return chain.get_patient_record(patient_id)


@router.get("/analytics", response_model=ChainAnalytics, tags=["Queries"])
def get_analytics(chain: HealthInsureChain = Depends(get_chain)):
    return chain.get_chain_analytics()


@router.get("/chain/validity", response_model=ValidityResponse, tags=["Queries"])
def get_validity(chain: HealthInsureChain = Depends(get_chain)):
    violation = chain.first_violation()
    return ValidityResponse(
        valid=violation is None,
        block_count=chain.ledger.length,
        first_invalid_index=violation.index if violation else None,
        reason=violation.reason.value if violation else None,
    )


@router.get("/chain/blocks", response_model=list[BlockResponse], tags=["Queries"])
def list_blocks(
    offset: int = 0,
    limit: int = 100,
    chain: HealthInsureChain = Depends(get_chain),
):
    blocks = chain.ledger.blocks[max(offset, 0):max(offset, 0) + max(limit, 0)]
    return [BlockResponse(**b.summary()) for b in blocks]


@router.get("/chain/export", tags=["Queries"])
def export_chain(chain: HealthInsureChain = Depends(get_chain)):
    """Every block as JSON; feed the result to healthchain-verify."""
    return chain.ledger.export()


@router.get("/chain/blocks/{index}", tags=["Queries"])
def get_block(index: int, chain: HealthInsureChain = Depends(get_chain)):
    block = chain.ledger.get_block(index)
    if block is None:
        raise HTTPException(status_code=404, detail=f"Block {index} not found")
    return block.model_dump(mode="json")


@router.get("/claims/{claim_id}", response_model=Claim, tags=["Queries"])
def get_claim(claim_id: str, chain: HealthInsureChain = Depends(get_chain)):
    claim = chain.get_claim(claim_id)
    if claim is None:
        raise HTTPException(status_code=404, detail=f"Claim {claim_id} not found")
    return claim


@router.get(
    "/organizations",
    response_model=list[OrganizationResponse],
    tags=["Queries"],
)
def list_organizations(chain: HealthInsureChain = Depends(get_chain)):
    return [
        OrganizationResponse(
            id=org.id,
            name=org.name,
            type=org.type,
            permissions=sorted(org.permissions),
        )
        for org in chain.list_organizations()
    ]


@router.get(
    "/tokens/{address}",
    response_model=TokenBalanceResponse,
    tags=["Queries"],
)
def get_token_balance(address: str, chain: HealthInsureChain = Depends(get_chain)):
    return TokenBalanceResponse(
        address=address,
        balance=chain.token.balance_of(address),
        symbol=chain.token.symbol,
        total_supply=chain.token.total_supply,
    )


@router.get("/archive", tags=["Queries"])
def list_archived_claims(chain: HealthInsureChain = Depends(get_chain)):
    return [
        r.model_dump(mode="json")
        for r in chain.archived_claims
    ]
