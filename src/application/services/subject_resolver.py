"""Subject resolution by external id, within one table or across all tables."""

from src.application.services.schema_registry import SchemaRegistry
from src.domain.entities.subject import SubjectMatch, SubjectRecord
from src.domain.value_objects.core import coerce_attributes
from src.infrastructure.persistence.models.subject import Subject
from src.infrastructure.persistence.repositories.subject_repo import SubjectRepository
from src.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


def to_subject_record(subject: Subject) -> SubjectRecord:
    return SubjectRecord(
        id=subject.id,
        table_id=subject.table_id,
        external_id=subject.external_id,
        attributes=coerce_attributes(subject.attributes),
        photo_url=subject.photo_url,
    )


class SubjectResolver:
    """
    Finds the subject a credential refers to.

    Matching is exact string equality on external_id. Internal ids are never
    accepted here so they stay out of credentials.
    """

    def __init__(self, subject_repo: SubjectRepository, schema_registry: SchemaRegistry):
        self.subject_repo = subject_repo
        self.schema_registry = schema_registry

    async def find_by_external_id(
        self, external_id: str, table_id: str | None = None
    ) -> SubjectMatch | None:
        """
        Resolve a subject, its table and that table's current schema.

        With table_id the subject must belong to that table; without it all
        tables are searched in one query.
        """
        found = await self.subject_repo.find_by_external_id(external_id, table_id)
        if found is None:
            logger.debug(
                "No subject for external id in %s",
                f"table {table_id}" if table_id else "any table",
            )
            return None

        subject, table_name = found
        schema = await self.schema_registry.get_schema(subject.table_id)
        return SubjectMatch(
            subject=to_subject_record(subject),
            table_id=subject.table_id,
            table_name=table_name,
            schema=schema,
        )
