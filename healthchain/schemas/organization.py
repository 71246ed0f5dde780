"""
Organization Schema

Organizations are registered once at startup and read-only afterwards.
The public key is an opaque identity token; nothing is signed with it.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class OrganizationType(str, Enum):
    HEALTHCARE_PROVIDER = "HEALTHCARE_PROVIDER"
    INSURANCE_PROVIDER = "INSURANCE_PROVIDER"
    PATIENT_ACCESS = "PATIENT_ACCESS"


class Permission(str, Enum):
    SUBMIT_CLAIMS = "SUBMIT_CLAIMS"
    VIEW_POLICIES = "VIEW_POLICIES"
    CREATE_POLICIES = "CREATE_POLICIES"
    APPROVE_CLAIMS = "APPROVE_CLAIMS"
    VIEW_ALL = "VIEW_ALL"
    VIEW_OWN_DATA = "VIEW_OWN_DATA"
    SUBMIT_DOCUMENTS = "SUBMIT_DOCUMENTS"


class Organization(BaseModel):
    """Immutable registry entry for a participating organization."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    type: OrganizationType
    permissions: frozenset[str] = Field(default_factory=frozenset)
    public_key: str

    def can(self, permission: Permission | str) -> bool:
        value = permission.value if isinstance(permission, Permission) else permission
        return value in self.permissions


DEFAULT_ORGANIZATIONS: tuple[Organization, ...] = (
    Organization(
        id="HOSPITAL_ORG",
        name="Hospital Network",
        type=OrganizationType.HEALTHCARE_PROVIDER,
        permissions=frozenset({Permission.SUBMIT_CLAIMS.value, Permission.VIEW_POLICIES.value}),
        public_key="hospital_public_key_hash",
    ),
    Organization(
        id="INSURANCE_ORG",
        name="Insurance Company",
        type=OrganizationType.INSURANCE_PROVIDER,
        permissions=frozenset({
            Permission.CREATE_POLICIES.value,
            Permission.APPROVE_CLAIMS.value,
            Permission.VIEW_ALL.value,
        }),
        public_key="insurance_public_key_hash",
    ),
    Organization(
        id="PATIENT_ORG",
        name="Patient Portal",
        type=OrganizationType.PATIENT_ACCESS,
        permissions=frozenset({Permission.VIEW_OWN_DATA.value, Permission.SUBMIT_DOCUMENTS.value}),
        public_key="patient_public_key_hash",
    ),
)
