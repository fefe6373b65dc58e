"""
Subject domain entities.

This represents a credential holder independent of how it's stored,
plus the display view built from its table schema.
"""

from dataclasses import dataclass, field

from src.domain.entities.schema import TableSchema
from src.domain.value_objects.core import Attributes
from src.shared.enums import CanonicalRole, ResolutionSource


@dataclass(frozen=True)
class SubjectRecord:
    """Domain entity for Subject (business view, no persistence concerns)"""

    id: str
    table_id: str
    external_id: str
    attributes: Attributes
    photo_url: str | None = None


@dataclass(frozen=True)
class SubjectMatch:
    """Result of resolving an external id: the subject, its table and schema"""

    subject: SubjectRecord
    table_id: str
    table_name: str
    schema: TableSchema | None


@dataclass
class DisplayFields:
    """
    Canonical display values of a subject.

    `sources` records how each role was filled so precedence
    (mapping > heuristic > fallback > default) can be inspected.
    """

    full_name: str = "Unknown"
    identifier: str = "N/A"
    designation: str = "Member"
    department: str | None = None
    email: str | None = None
    sources: dict[CanonicalRole, ResolutionSource] = field(default_factory=dict)

    def get(self, role: CanonicalRole) -> str | None:
        return getattr(self, ROLE_ATTRIBUTES[role])

    def set(self, role: CanonicalRole, value: str, source: ResolutionSource) -> None:
        setattr(self, ROLE_ATTRIBUTES[role], value)
        self.sources[role] = source

    def source_of(self, role: CanonicalRole) -> ResolutionSource:
        return self.sources.get(role, ResolutionSource.DEFAULT)

    def to_dict(self) -> dict[str, str | None]:
        return {role.value: self.get(role) for role in CanonicalRole}


ROLE_ATTRIBUTES: dict[CanonicalRole, str] = {
    CanonicalRole.FULL_NAME: "full_name",
    CanonicalRole.IDENTIFIER: "identifier",
    CanonicalRole.DESIGNATION: "designation",
    CanonicalRole.DEPARTMENT: "department",
    CanonicalRole.EMAIL: "email",
}
