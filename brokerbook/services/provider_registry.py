from __future__ import annotations

import importlib
from pathlib import Path
from typing import Dict, List, Optional, Type

from brokerbook.logging_config import get_logger
from brokerbook.schemas.statements import FormatInfo
from brokerbook.services.workbook import Workbook

logger = get_logger(__name__)


class AbstractProviderRegistry:
    """Abstract base class for provider registries.

    Each subclass automatically gets its own _providers dictionary.
    """

    def __init_subclass__(cls, **kwargs):
        """Ensure each subclass has its own _providers dict and discovery tracking."""
        super().__init_subclass__(**kwargs)
        cls._providers = {}
        cls._discovery_done = False

    @classmethod
    def register(cls, provider_class: Type) -> None:
        """Register a provider class.

        The provider_class must expose a `provider_code` attribute.
        We instantiate the class to read the provider_code (handles properties).
        """
        code = getattr(provider_class(), cls._get_provider_code_attr(), None)
        if not code:
            raise ValueError("Provider class must define a provider_code attribute")
        existing = cls._providers.get(code)
        if existing is not None and existing is not provider_class:
            logger.warning("Provider code registered twice", code=code, provider=provider_class.__name__)
        cls._providers[code] = provider_class

    @classmethod
    def get_provider(cls, code: str):
        """Get provider class by code. Triggers auto-discovery if not done yet."""
        cls.auto_discover()
        return cls._providers.get(code)

    @classmethod
    def get_provider_instance(cls, code: str):
        """Return an instantiated provider object for given provider code, None if not found."""
        prov_cls = cls.get_provider(code)
        if not prov_cls:
            return None
        return prov_cls()

    @classmethod
    def list_providers(cls) -> List[Dict[str, str]]:
        """
        List all registered providers with their metadata.
        Triggers auto-discovery if not done yet.
        Returns:
            List of dicts with 'code' and 'name' keys
        """
        cls.auto_discover()
        providers = []
        for code, provider_class in cls._providers.items():
            instance = provider_class()
            name = getattr(instance, 'provider_name', None) or code
            providers.append({
                'code': code,
                'name': name
                })
        return providers

    @classmethod
    def auto_discover(cls) -> None:
        """Import all modules in the provider folder to trigger registration.

        Modules are imported under their package name, so a provider module
        imported directly elsewhere registers the same class only once.
        """
        if cls._discovery_done:
            return
        folder = cls._get_provider_folder()
        target_dir = Path(__file__).parent / folder

        if not target_dir.exists():
            return

        for py in sorted(target_dir.glob('*.py')):
            if py.name == '__init__.py' or not py.is_file():
                continue
            module_name = f"{__package__}.{folder}.{py.stem}"
            try:
                importlib.import_module(module_name)
            except Exception as e:
                # Log error but don't stop discovery on single-module errors
                logger.error("Error importing provider module", module_name=module_name, error=str(e))
                continue
        cls._discovery_done = True

    # --- methods to specialize in subclasses ---
    @classmethod
    def _get_provider_folder(cls) -> str:
        raise NotImplementedError

    @classmethod
    def _get_provider_code_attr(cls) -> str:
        return "provider_code"


# Specializations
class FormatRegistry(AbstractProviderRegistry):
    """Registry of statement formats (report_formats/ folder)."""

    @classmethod
    def _get_provider_folder(cls) -> str:
        return "report_formats"

    @classmethod
    def _instances_by_priority(cls) -> list:
        cls.auto_discover()
        instances = [provider_class() for provider_class in cls._providers.values()]
        return sorted(instances, key=lambda p: (-p.detection_priority, p.provider_code))

    @classmethod
    def list_format_info(cls) -> List[FormatInfo]:
        """FormatInfo of every registered format, highest detection priority first."""
        return [p.to_format_info() for p in cls._instances_by_priority()]

    @classmethod
    def get_compatible_formats(cls, workbook: Workbook) -> List[str]:
        """Codes of the formats able to parse the workbook, by detection priority."""
        return [p.provider_code for p in cls._instances_by_priority() if p.can_parse(workbook)]

    @classmethod
    def auto_detect_format(cls, workbook: Workbook):
        """
        Find the format of a workbook.

        Formats are tried by detection priority (higher first).

        Returns:
            ReportFormat instance, or None if no format recognizes the workbook
        """
        for provider in cls._instances_by_priority():
            if workbook.path is not None and workbook.path.suffix.lower() not in provider.supported_extensions:
                continue
            if provider.can_parse(workbook):
                logger.info("Format auto-detected", format=provider.provider_code, path=str(workbook.path))
                return provider
        logger.info("No format recognizes the statement", path=str(workbook.path))
        return None


# Decorator factory
def register_provider(registry_class: Type[AbstractProviderRegistry]):
    """
    Decorator to register a provider class with the given registry.
    :param registry_class: The registry class to register the provider with (e.g., FormatRegistry)
    :return:

    Example usage:
    @register_provider(FormatRegistry)
    class MyReportFormat(ReportFormat):
        ...
    """

    def decorator(provider_class: Type):
        registry_class.register(provider_class)
        return provider_class

    return decorator


def get_format(code: str) -> Optional[object]:
    """Format instance by code, None if unknown."""
    return FormatRegistry.get_provider_instance(code)
