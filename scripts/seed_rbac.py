"""Seed default RBAC (system permissions and roles) for a tenant.

Usage:
    python -m scripts.seed_rbac <tenant_id> [admin_user_id]

Idempotent: permissions and roles that already exist are left untouched.
When admin_user_id is given, that user is made a primary holder of the
tenant's admin role and an access token for it is printed. Uses the
configured DATABASE_BACKEND (the memory backend only makes sense as a dry run).
"""

import asyncio
import sys

from app.core.config import get_settings
from app.core.tenant_validation import is_valid_tenant_id_format
from app.infrastructure.firebase import close_firebase, init_firebase
from app.infrastructure.firebase.repositories import (
    FirestorePermissionRepository,
    FirestoreRoleAssignmentRepository,
    FirestoreRoleRepository,
)
from app.infrastructure.memory import (
    InMemoryPermissionRepository,
    InMemoryRoleAssignmentRepository,
    InMemoryRoleRepository,
)
from app.infrastructure.security.jwt import create_access_token
from app.infrastructure.services import TenantInitializationService


def _build_service() -> TenantInitializationService:
    settings = get_settings()
    if settings.database_backend == "memory":
        print("DATABASE_BACKEND=memory: nothing is persisted (dry run)", file=sys.stderr)
        return TenantInitializationService(
            InMemoryRoleRepository(),
            InMemoryPermissionRepository(),
            InMemoryRoleAssignmentRepository(),
        )
    client = init_firebase(settings)
    if client is None:
        print("Firestore client not configured", file=sys.stderr)
        sys.exit(1)
    return TenantInitializationService(
        FirestoreRoleRepository(client),
        FirestorePermissionRepository(client),
        FirestoreRoleAssignmentRepository(client),
    )


async def main() -> None:
    """Seed RBAC for the given tenant."""
    if len(sys.argv) < 2:
        print(
            "Usage: python -m scripts.seed_rbac <tenant_id> [admin_user_id]",
            file=sys.stderr,
        )
        sys.exit(1)
    tenant_id = sys.argv[1]
    admin_user_id = sys.argv[2] if len(sys.argv) > 2 else None
    if not is_valid_tenant_id_format(tenant_id):
        print(f"Invalid tenant id: {tenant_id}", file=sys.stderr)
        sys.exit(1)

    init_svc = _build_service()
    try:
        role_map = await init_svc.initialize_tenant_rbac(tenant_id)
        print(f"Seeded RBAC for tenant {tenant_id}: {', '.join(sorted(role_map))}")
        if admin_user_id:
            await init_svc.assign_admin_role(tenant_id, admin_user_id)
            print(f"User {admin_user_id} holds the admin role")
            print(create_access_token(admin_user_id, tenant_id))
    finally:
        await close_firebase()


if __name__ == "__main__":
    asyncio.run(main())
