from src.domain.entities.credential import IssuedCredential, TokenStatus
from src.domain.entities.schema import SchemaField, TableSchema
from src.domain.entities.subject import DisplayFields, SubjectMatch, SubjectRecord

__all__ = [
    "DisplayFields",
    "IssuedCredential",
    "SchemaField",
    "SubjectMatch",
    "SubjectRecord",
    "TableSchema",
    "TokenStatus",
]
