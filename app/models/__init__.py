"""ORM models."""

from app.models.audit import SecretAccessLog
from app.models.organization import Organization, OrganizationMember
from app.models.secret import Secret
from app.models.token import ApiToken

__all__ = [
    "ApiToken",
    "Organization",
    "OrganizationMember",
    "Secret",
    "SecretAccessLog",
]
