"""Firestore collection names (schema-in-code).

Firestore has no DDL or migrations; collections appear on first write.
These constants are the single source of truth for the "schema".

Documents are keyed by entity id and carry tenant_id; reads check the
tenant so one tenant can never load another tenant's document by id.
"""

# RBAC
COLLECTION_ROLES = "roles"
COLLECTION_PERMISSIONS = "permissions"
COLLECTION_USER_ROLES = "user_roles"

# Audit
COLLECTION_SECURITY_EVENTS = "security_events"
