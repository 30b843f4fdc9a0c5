"""
buildfleet.core.registry - Module Registry
============================================

The static, explicitly declared list of modules every component consumes.
Modules are never discovered by scanning directories: whatever the registry
holds is the whole project, in dispatch order.

Checked at construction:
    - Module names are unique.
    - Zero or one module is flagged ``is_primary``.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Optional

import structlog

from buildfleet.core.exceptions import ConfigurationError
from buildfleet.core.models import ModuleDescriptor


logger = structlog.get_logger()


class ModuleRegistry:
    """Read-only, ordered collection of ModuleDescriptor entries.

    Example:
        >>> registry = ModuleRegistry([
        ...     ModuleDescriptor(name="base", is_primary=True),
        ...     ModuleDescriptor(name="yaml"),
        ... ])
        >>> registry.primary.name
        'base'
    """

    def __init__(self, modules: Iterable[ModuleDescriptor]) -> None:
        self._modules: tuple[ModuleDescriptor, ...] = tuple(modules)
        self._validate()
        self._by_name = {m.name: m for m in self._modules}

        logger.bind(component="module_registry").debug(
            "registry_loaded",
            modules=[m.name for m in self._modules],
            primary=self.primary.name if self.primary else None,
        )

    def _validate(self) -> None:
        seen: set[str] = set()
        duplicates: list[str] = []
        for module in self._modules:
            if module.name in seen:
                duplicates.append(module.name)
            seen.add(module.name)
        if duplicates:
            raise ConfigurationError(
                message=f"Duplicate module names in registry: {', '.join(duplicates)}",
                error_code="DUPLICATE_MODULE",
                details={"duplicates": duplicates},
            )

        primaries = [m.name for m in self._modules if m.is_primary]
        if len(primaries) > 1:
            raise ConfigurationError(
                message=f"At most one primary module is allowed, got {len(primaries)}",
                error_code="MULTIPLE_PRIMARY_MODULES",
                details={"primary_modules": primaries},
            )

    @property
    def modules(self) -> tuple[ModuleDescriptor, ...]:
        return self._modules

    @property
    def primary(self) -> Optional[ModuleDescriptor]:
        for module in self._modules:
            if module.is_primary:
                return module
        return None

    def get(self, name: str) -> ModuleDescriptor:
        """Look a module up by name.

        Raises:
            ConfigurationError: If no module has that name.
        """
        try:
            return self._by_name[name]
        except KeyError:
            raise ConfigurationError(
                message=f"Unknown module: {name}",
                error_code="UNKNOWN_MODULE",
                details={"module": name, "known": list(self._by_name)},
            ) from None

    def select(self, names: Optional[Iterable[str]] = None) -> tuple[ModuleDescriptor, ...]:
        """Return the named modules in registry order, or all of them."""
        if names is None:
            return self._modules
        wanted = {self.get(n).name for n in names}
        return tuple(m for m in self._modules if m.name in wanted)

    def __iter__(self) -> Iterator[ModuleDescriptor]:
        return iter(self._modules)

    def __len__(self) -> int:
        return len(self._modules)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name
