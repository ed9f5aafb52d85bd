import logging
from typing import Any, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from app.core.cache import CacheService
from app.core.default_scoring_config import DEFAULT_SCORING_FIELDS
from app.core.exceptions import InvalidScoringConfigError
from app.models.tenant_settings import TenantSettings
from app.repositories.tenant_settings_repository import TenantSettingsRepository
from app.schemas.scoring import ScoringConfig

logger = logging.getLogger(__name__)


def parse_scoring_config(fields: Any) -> ScoringConfig:
    """Validate a raw ``fields`` list into a :class:`ScoringConfig`.

    Unknown field names, malformed rules and duplicate ids are rejected
    here, when the configuration is loaded, instead of silently scoring 0
    later on.
    """
    try:
        return ScoringConfig.model_validate({"fields": fields})
    except PydanticValidationError as exc:
        raise InvalidScoringConfigError(
            "Scoring configuration failed validation",
            {"errors": exc.errors(include_url=False, include_context=False)},
        )


class ScoringConfigStore:
    """Loads, creates and replaces a tenant's scoring configuration."""

    def __init__(
        self,
        settings_repo: TenantSettingsRepository,
        cache: Optional[CacheService] = None,
    ) -> None:
        self._repo = settings_repo
        self._cache: CacheService = cache or CacheService()

    async def load(
        self, tenant_id: str, lock: Optional[str] = None
    ) -> Tuple[TenantSettings, ScoringConfig, bool]:
        """Return ``(row, config, created)`` for *tenant_id*.

        The row is created with the default configuration on first access;
        ``created`` tells the caller this call did so.
        """
        created = False
        row = await self._repo.get(tenant_id, lock=lock)
        if row is None:
            created = await self._repo.create_if_missing(
                tenant_id, default_fields=DEFAULT_SCORING_FIELDS
            )
            row = await self._repo.get(tenant_id, lock=lock)
        return row, parse_scoring_config(row.scoring_fields), created

    async def replace(self, row: TenantSettings, config: ScoringConfig) -> ScoringConfig:
        """Swap the stored field list for *config* in one write."""
        await self._repo.replace_scoring_fields(row, config.to_storage())
        await self._repo.flush()
        logger.info(
            "Scoring configuration for tenant %s replaced (version %s, %d fields)",
            row.tenant_id,
            row.config_version,
            len(config.fields),
        )
        return config

    async def get_cached(self, tenant_id: str) -> Optional[ScoringConfig]:
        cached = await self._cache.get_scoring_config(tenant_id)
        if cached is None:
            return None
        try:
            return parse_scoring_config(cached.get("fields", []))
        except InvalidScoringConfigError:
            logger.warning("Discarding invalid cached scoring config for tenant %s", tenant_id)
            return None

    async def cache(self, tenant_id: str, config: ScoringConfig) -> None:
        await self._cache.set_scoring_config(
            tenant_id, config.model_dump(by_alias=True, mode="json")
        )
