import logging
from typing import Dict
from django.conf import settings

logger = logging.getLogger(__name__)


class CacheKeyManager:
    """
    Centralized creation of cache keys (and wildcard patterns) based on templates
    defined in settings.CACHE_KEY_TEMPLATES.

    Usage:
        key = CacheKeyManager.make_key("quote", "stats", scope="artisan", user_id=uid)
        # -> "artisanhub:quote:stats:artisan:<uid>"

        pattern = CacheKeyManager.make_pattern("quote", "stats_all")
        # -> "artisanhub:quote:stats:*"
    """

    @staticmethod
    def _get_template(resource_name: str, key_name: str) -> str:
        """Retrieve the raw template string, or log + raise if missing."""
        templates = getattr(settings, "CACHE_KEY_TEMPLATES", {})
        if resource_name not in templates:
            logger.error(
                f"[CacheKeyManager] No templates configured for resource '{resource_name}'"
            )
            raise KeyError(f"No templates for resource '{resource_name}'")
        resource_templates = templates[resource_name]
        if key_name not in resource_templates:
            logger.error(
                f"[CacheKeyManager] No template named '{key_name}' for resource '{resource_name}'"
            )
            raise KeyError(f"No key '{key_name}' for resource '{resource_name}'")
        return resource_templates[key_name]

    @staticmethod
    def _with_prefix(filled: str) -> str:
        prefix = settings.CACHES["default"].get("KEY_PREFIX", "")
        if prefix:
            return f"{prefix}:{filled}"
        return filled

    @staticmethod
    def make_key(resource_name: str, key_name: str, **kwargs) -> str:
        """
        Build an exact cache key (no '*').
        """
        raw_template = CacheKeyManager._get_template(resource_name, key_name)
        if "*" in raw_template:
            raise ValueError(
                f"Template '{raw_template}' is a wildcard; use make_pattern(...) instead"
            )
        try:
            filled = raw_template.format(**kwargs)
        except KeyError as e:
            logger.error(
                f"[CacheKeyManager] Missing argument '{e.args[0]}' when formatting '{raw_template}'"
            )
            raise
        return CacheKeyManager._with_prefix(filled)

    @staticmethod
    def make_pattern(resource_name: str, key_name: str, **kwargs) -> str:
        """
        Build a wildcard pattern (the template must contain '*').
        """
        raw_template = CacheKeyManager._get_template(resource_name, key_name)
        if "*" not in raw_template:
            logger.error(
                f"[CacheKeyManager] Template for '{resource_name}:{key_name}' "
                f"does not contain '*'; use make_key(...) instead."
            )
            raise ValueError(f"Template '{raw_template}' has no wildcard")
        try:
            filled = raw_template.format(**kwargs)
        except KeyError as e:
            logger.error(
                f"[CacheKeyManager] Missing argument '{e.args[0]}' when formatting '{raw_template}'"
            )
            raise
        return CacheKeyManager._with_prefix(filled)

    @staticmethod
    def get_available_templates(resource_name: str) -> Dict[str, str]:
        templates = getattr(settings, "CACHE_KEY_TEMPLATES", {})
        return templates.get(resource_name, {})
