"""
buildfleet.integrations.runner.base - Abstract Module Runner Interface
=======================================================================

The Task Graph Driver never compiles, tests or cleans anything itself. It asks
a ModuleRunner to carry out one lifecycle phase for one module, and only
cares whether that call returned or raised.

    ┌──────────────────┐   run(module, phase)   ┌─────────────────┐
    │  TaskGraphDriver │ ─────────────────────→ │  ModuleRunner   │
    │                  │ ←── None / exception ─ │  (abstract)     │
    └──────────────────┘                        └────────┬────────┘
                                                         │
                                             ┌───────────┴──────────┐
                                        ┌────▼──────┐        ┌──────▼──────┐
                                        │ Recording │        │  Command    │
                                        │  Runner   │        │  Runner     │
                                        └───────────┘        └─────────────┘
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from buildfleet.core.enums import LifecyclePhase
from buildfleet.core.models import ModuleDescriptor


class ModuleRunner(ABC):
    """Executes one lifecycle phase for one module.

    Implementations raise on failure. Any exception is turned into a
    ModulePhaseFailure by the Task Graph Driver.
    """

    @abstractmethod
    async def run(
        self,
        module: ModuleDescriptor,
        phase: LifecyclePhase,
        module_dir: Path,
        version: str,
    ) -> None:
        """Run ``phase`` for ``module`` inside ``module_dir``."""
        ...

    @property
    def name(self) -> str:
        return self.__class__.__name__

    def __repr__(self) -> str:
        return f"{self.name}()"
