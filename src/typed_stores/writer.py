"""Write store modules to disk."""

from __future__ import annotations

import logging
from pathlib import Path

from typed_stores.config import EmitterOptions
from typed_stores.emitter import TypeScriptEmitter
from typed_stores.errors import EmitterError
from typed_stores.store import StoreArtifact, StoreDeclarationBuilder
from typed_stores.types import TypeRegistry

logger = logging.getLogger(__name__)


class StoreWriter:
    """Persist store artifacts as one file per store."""

    def __init__(self, store_dir: Path, file_extension: str = ".ts") -> None:
        """Initialize the writer.

        Args:
            store_dir: Directory the files are written to. Created on the
                first write, parents included.
            file_extension: Suffix appended to each store's name.
        """
        self.store_dir = store_dir
        self.file_extension = file_extension

    @classmethod
    def from_options(cls, options: EmitterOptions) -> StoreWriter:
        return cls(options.store_dir, options.file_extension)

    def path_for(self, artifact: StoreArtifact) -> Path:
        """Return the path the artifact is written to."""
        return self.store_dir / f"{artifact.name}{self.file_extension}"

    def write(self, artifact: StoreArtifact) -> Path:
        """Write one artifact, replacing any existing file."""
        self.store_dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(artifact)
        with open(path, "w", encoding="utf-8") as f:
            f.write(artifact.text)
        logger.info("Wrote %s", path)
        return path


class EmitReport:
    """Outcome of emitting every registered store."""

    def __init__(self) -> None:
        self.written: list[Path] = []
        self.failures: list[tuple[str, EmitterError]] = []

    @property
    def ok(self) -> bool:
        return not self.failures


def emit_stores(
    registry: TypeRegistry,
    writer: StoreWriter,
    options: EmitterOptions | None = None,
) -> EmitReport:
    """Build and write a module for every store in ``registry``.

    Stores are processed one at a time in registration order, each with its
    own emitter pass. An EmitterError stops the batch unless
    ``options.keep_going`` is set; files already written stay in place.
    """
    if options is None:
        options = EmitterOptions()
    builder = StoreDeclarationBuilder(TypeScriptEmitter(strict=options.strict))
    report = EmitReport()

    for registration in registry.stores():
        try:
            artifact = builder.build(registration)
        except EmitterError as e:
            if not options.keep_going:
                raise
            logger.error("Skipping store %s: %s", registration.model.name, e)
            report.failures.append((registration.model.name, e))
            continue
        report.written.append(writer.write(artifact))

    return report
