"""
Shared module - Base model, enum helpers and id allocation used by every entity.
"""

from app.modules.shared.models import (
    CREDENTIAL_CHECK,
    ID_SEQUENCES,
    AuthProvider,
    BaseModel,
    id_sequence,
    next_id,
    pg_enum,
)

__all__ = [
    "AuthProvider",
    "BaseModel",
    "CREDENTIAL_CHECK",
    "ID_SEQUENCES",
    "id_sequence",
    "next_id",
    "pg_enum",
]
