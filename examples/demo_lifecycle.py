"""
Demonstration: Policy -> Claim -> Reward lifecycle

Issues a policy, submits an approvable claim, shares data between
organizations and prints the resulting records.

Run with: python -m examples.demo_lifecycle
Set HEALTHCHAIN_DIFFICULTY to change the proof-of-work cost (default 4).
"""

import json

from healthchain.core import HealthInsureChain
from healthchain.observability import setup_logging
from healthchain.schemas import (
    ClaimDocument,
    IssuePolicyRequest,
    SubmitClaimRequest,
)


def main():
    setup_logging()

    print("=" * 60)
    print("HealthInsureChain Demo")
    print("=" * 60)
    print()

    chain = HealthInsureChain.from_env()
    print(f"Chain initialized with genesis block {chain.ledger.tip.hash[:16]}...")
    print(f"Difficulty: {chain.ledger.difficulty}")
    print()

    # ================================================================
    # STEP 1: ISSUE POLICY
    # ================================================================
    print("1. Adding Health Insurance Policy...")

    policy_hash = chain.issue_policy(
        IssuePolicyRequest(
            policy_id="POL001",
            patient_id="PAT001",
            insurance_company="HealthSecure Inc.",
            coverage=75000,
            premium=500,
            conditions=["None"],
        )
    )
    print(f"[OK] Policy hash: {policy_hash}")
    print()

    # ================================================================
    # STEP 2: SUBMIT CLAIM
    # ================================================================
    print("2. Submitting Insurance Claim...")

    claim = chain.submit_claim(
        SubmitClaimRequest(
            claim_id="CLM001",
            policy_id="POL001",
            patient_id="PAT001",
            hospital_id="HOS001",
            diagnosis="Appendectomy",
            treatment_cost=15000,
            documents=[
                ClaimDocument(type="medical_report", hash="med_report_hash_123"),
                ClaimDocument(type="bills", hash="bills_hash_456"),
                ClaimDocument(type="prescription", hash="prescription_hash_789"),
            ],
        )
    )

    if claim is not None:
        print(f"[OK] Claim {claim.claim_id}: {claim.status.value} (score {claim.verification_score})")
        record = chain.store_large_claim(claim)
        if record is not None:
            print(f"   Archived: {record.model_dump_json()}")
    else:
        rejected = chain.get_claim("CLM001")
        print(f"[REJECTED] {rejected.rejection_reason if rejected else 'unknown'}")
    print()

    # ================================================================
    # STEP 3: SHARE DATA
    # ================================================================
    print("3. Sharing data between Hospital and Insurance...")
    shared = chain.share_data_between_orgs(
        "HOSPITAL_ORG",
        "INSURANCE_ORG",
        "CLAIM_DATA",
        "claim_hash_abc123",
    )
    print(f"[{'OK' if shared else 'FAILED'}] Data shared")
    print()

    # ================================================================
    # STEP 4: PATIENT RECORD
    # ================================================================
    print("4. Patient Record:")
    patient_record = chain.get_patient_record("PAT001")
    print(json.dumps(patient_record.model_dump(mode="json"), indent=2))
    print()

    # ================================================================
    # STEP 5: ANALYTICS
    # ================================================================
    print("5. Blockchain Analytics:")
    print(json.dumps(chain.get_chain_analytics().model_dump(mode="json"), indent=2))
    print()

    # ================================================================
    # STEP 6: VALIDATION
    # ================================================================
    print("6. Blockchain Validation:")
    print(f"Is blockchain valid? {chain.is_chain_valid()}")
    print()

    print("=" * 60)
    print("Demo Complete")
    print("=" * 60)


if __name__ == "__main__":
    main()
