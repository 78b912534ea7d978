"""Clases base para fuentes de datos de una sesión."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from settings_review.model import CarbAbsorptionRecord, EffectSample, GlucoseSample


@dataclass(frozen=True)
class SourcePaths:
    """Container for source locations (a file or a folder of exports)."""

    root: Path


@dataclass(frozen=True)
class SessionInput:
    """Series and carb records loaded for one session.

    ``start``/``end`` are the window stored with the export, if any.
    """

    glucose: list[GlucoseSample] = field(default_factory=list)
    insulin_effect: list[EffectSample] = field(default_factory=list)
    basal_effect: list[EffectSample] = field(default_factory=list)
    carb_records: list[CarbAbsorptionRecord] = field(default_factory=list)
    start: datetime | None = None
    end: datetime | None = None


class DataSource(ABC):
    """Abstract session data source."""

    pattern = "*"

    def __init__(self, paths: SourcePaths) -> None:
        """Create a data source.

        Args:
            paths: Source paths configuration.
        """
        self._paths = paths

    def validate(self) -> None:
        """Validate that the configured root exists.

        Raises:
            FileNotFoundError: If the root is missing.
        """
        if not self._paths.root.exists():
            raise FileNotFoundError(str(self._paths.root))

    def resolve(self) -> Path:
        """Return the root if it is a file, else the newest match inside it."""
        if self._paths.root.is_file():
            return self._paths.root
        files = sorted(
            self._paths.root.glob(self.pattern),
            key=lambda p: p.stat().st_mtime,
            reverse=True,
        )
        if not files:
            raise FileNotFoundError(f"No {self.pattern} in {self._paths.root}")
        return files[0]

    @abstractmethod
    def load(self, path: Path) -> SessionInput:
        """Parse one export file.

        Raises:
            ValueError: If the content is malformed.
        """
