"""
Tests for the HTTP API

Each test gets its own chain (NoopSealer) served through the app lifespan.
"""

import pytest
from fastapi.testclient import TestClient

from healthchain.core import ChainConfig, HealthInsureChain, NoopSealer
from healthchain.main import create_app
from healthchain.verify import ExportVerifier, VerificationResult


POLICY = {
    "policy_id": "POL001",
    "patient_id": "PAT001",
    "insurance_company": "HealthSecure Inc.",
    "coverage": "75000",
    "premium": "500",
    "conditions": ["None"],
}

CLAIM = {
    "claim_id": "CLM001",
    "policy_id": "POL001",
    "patient_id": "PAT001",
    "hospital_id": "HOS001",
    "diagnosis": "Appendectomy",
    "treatment_cost": "15000",
    "documents": [
        {"type": "medical_report", "hash": "med_report_hash_123"},
        {"type": "bills", "hash": "bills_hash_456"},
        {"type": "prescription", "hash": "prescription_hash_789"},
    ],
}


@pytest.fixture
def chain():
    return HealthInsureChain(config=ChainConfig(difficulty=0), sealer=NoopSealer())


@pytest.fixture
def client(chain):
    with TestClient(create_app(chain)) as client:
        yield client


class TestCommands:

    def test_issue_policy(self, client):
        response = client.post("/policies", json=POLICY)

        assert response.status_code == 201
        body = response.json()
        assert body["policy_id"] == "POL001"
        assert len(body["policy_hash"]) == 64

    def test_duplicate_policy_conflict(self, client):
        client.post("/policies", json=POLICY)
        response = client.post("/policies", json=POLICY)

        assert response.status_code == 409

    def test_invalid_policy_payload(self, client):
        response = client.post("/policies", json={**POLICY, "coverage": "-1"})
        assert response.status_code == 422

    def test_submit_claim_approved(self, client, chain):
        client.post("/policies", json=POLICY)
        response = client.post("/claims", json=CLAIM)

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "APPROVED"
        assert body["verification_score"] == 100
        assert chain.token.balance_of("PAT001") == 100

    def test_submit_claim_hard_rejected(self, client, chain):
        client.post("/policies", json=POLICY)
        response = client.post("/claims", json={**CLAIM, "documents": CLAIM["documents"][:1]})

        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["claim_id"] == "CLM001"
        assert detail["status"] == "REJECTED"
        assert detail["reason"] == "Missing required documents"
        assert chain.ledger.length == 2

    def test_large_claim_archived(self, client):
        client.post("/policies", json=POLICY)
        client.post("/claims", json={**CLAIM, "treatment_cost": "60000"})

        archive = client.get("/archive").json()
        assert len(archive) == 1
        assert archive[0]["claim_id"] == "CLM001"

    def test_reward(self, client):
        response = client.post("/rewards", json={"patient_id": "PAT002", "amount": 10})

        assert response.status_code == 201
        assert response.json()["kind"] == "REWARD"
        assert client.get("/tokens/PAT002").json()["balance"] == 10

    def test_data_sharing(self, client):
        response = client.post(
            "/data-sharing",
            json={
                "from_org": "HOSPITAL_ORG",
                "to_org": "INSURANCE_ORG",
                "data_type": "CLAIM_DATA",
                "data_hash": "claim_hash_abc123",
            },
        )

        assert response.status_code == 201
        assert response.json() == {"shared": True}

    def test_data_sharing_unknown_org(self, client):
        response = client.post(
            "/data-sharing",
            json={
                "from_org": "HOSPITAL_ORG",
                "to_org": "NOPE",
                "data_type": "CLAIM_DATA",
                "data_hash": "x",
            },
        )

        assert response.status_code == 404


class TestQueries:

    @pytest.fixture
    def populated(self, client):
        client.post("/policies", json=POLICY)
        client.post("/claims", json=CLAIM)
        return client

    def test_patient_record(self, populated):
        body = populated.get("/patients/PAT001/record").json()

        assert body["token_balance"] == 100
        assert len(body["policies"]) == 1
        assert len(body["claims"]) == 1
        assert len(body["rewards"]) == 1

    def test_analytics(self, populated):
        body = populated.get("/analytics").json()

        assert body["total_blocks"] == 4
        assert body["approval_rate"] == "100.00%"
        assert body["is_chain_valid"] is True

    def test_validity(self, populated):
        body = populated.get("/chain/validity").json()

        assert body == {
            "valid": True,
            "block_count": 4,
            "first_invalid_index": None,
            "reason": None,
        }

    def test_validity_after_tampering(self, populated, chain):
        chain.ledger.get_block(1).payload.premium = 1

        body = populated.get("/chain/validity").json()

        assert body["valid"] is False
        assert body["first_invalid_index"] == 1
        assert body["reason"] == "HASH_MISMATCH"

    def test_list_blocks_paginated(self, populated):
        blocks = populated.get("/chain/blocks", params={"offset": 1, "limit": 2}).json()

        assert [b["index"] for b in blocks] == [1, 2]
        assert [b["kind"] for b in blocks] == ["POLICY", "CLAIM"]

    def test_export_verifies_offline(self, populated):
        records = populated.get("/chain/export").json()

        assert len(records) == 4
        assert ExportVerifier(records).verify().result == VerificationResult.VERIFIED

    def test_get_block(self, populated):
        body = populated.get("/chain/blocks/0").json()
        assert body["payload"]["kind"] == "GENESIS"

        assert populated.get("/chain/blocks/99").status_code == 404

    def test_get_claim(self, populated):
        assert populated.get("/claims/CLM001").json()["status"] == "APPROVED"
        assert populated.get("/claims/NOPE").status_code == 404

    def test_organizations(self, client):
        ids = {org["id"] for org in client.get("/organizations").json()}
        assert ids == {"HOSPITAL_ORG", "INSURANCE_ORG", "PATIENT_ORG"}


class TestSystem:

    def test_health(self, client):
        body = client.get("/health").json()

        assert body["healthy"] is True
        assert body["checks"]["chain_integrity"]["valid"] is True

    def test_metrics(self, client):
        client.get("/health")
        body = client.get("/metrics").json()

        assert body["requests_total"] >= 1

    def test_request_id_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-1234"})
        assert response.headers["X-Request-ID"] == "req-1234"
