"""API-layer dependency functions.

Re-exports all dependency factories from ``app.dependencies`` so that
endpoint modules only need to import from ``app.api.deps``.
"""

from app.dependencies import (
    # Tenant
    get_tenant_id,
    # Repository factories
    get_lead_repo,
    get_activity_repo,
    get_stage_repo,
    get_tenant_settings_repo,
    # Service factories
    get_config_store,
    get_stage_registry,
    get_consistency_coordinator,
    get_lead_service,
    # Redis
    get_redis_client,
    get_cache_service,
)

__all__ = [
    "get_tenant_id",
    "get_lead_repo",
    "get_activity_repo",
    "get_stage_repo",
    "get_tenant_settings_repo",
    "get_config_store",
    "get_stage_registry",
    "get_consistency_coordinator",
    "get_lead_service",
    "get_redis_client",
    "get_cache_service",
]
