"""Persistência canônica de Pipelines e Segments (v1).

Um Pipeline (ou um Segment isolado) pode ser salvo e recarregado entre
sessões, preservando todos os campos do Segment: ids, targets,
dependencies, packages, payload, contexto, `force`, `executed`, `result`,
`execution_time`, `label` e `note`.

Decisões (v1):
- Formato: joblib
- `nodes`, `edges` e `text_summary` não são persistidos: são recalculados
- O namespace do `ExecutionContext` é salvo sem módulos e `__builtins__`

Limites explícitos:
- Não reexecuta Segments no load
- Não verifica se os targets ainda existem em disco
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Union

import joblib

from makepipe.core.pipeline.pipeline import Pipeline
from makepipe.core.segment.segment import Segment


@dataclass(frozen=True)
class PipelineArtifactMeta:
    """Metadata mínima (v1) de um Pipeline/Segment persistido."""

    type: str
    path: str
    segments: int
    format: str = "joblib"
    version: str = "v1"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "format": self.format,
            "path": self.path,
            "segments": self.segments,
            "version": self.version,
        }


class PipelineStore:
    """Store canônica (v1) para persistência e load de Pipelines e Segments."""

    def __init__(self, *, path: Union[str, Path]):
        self.path = Path(path)

    def save(self, obj: Union[Pipeline, Segment]) -> Dict[str, Any]:
        """Salva `obj` em joblib.

        Returns:
            Dict[str, Any]: metadata do artefato (serializável).
        """
        if isinstance(obj, Pipeline):
            kind, count = "pipeline", len(obj)
        elif isinstance(obj, Segment):
            kind, count = "segment", 1
        else:
            raise TypeError("`obj` must be a Pipeline or a Segment")

        self.path.parent.mkdir(parents=True, exist_ok=True)
        joblib.dump(obj, self.path)

        return PipelineArtifactMeta(type=kind, path=str(self.path), segments=count).to_dict()

    def load(self) -> Union[Pipeline, Segment]:
        """Carrega o Pipeline/Segment persistido sem reexecutar nada."""
        if not self.path.exists():
            raise FileNotFoundError(str(self.path))
        obj = joblib.load(self.path)
        if not isinstance(obj, (Pipeline, Segment)):
            raise TypeError(f"Artefato inesperado em {self.path}: {type(obj).__name__}")
        return obj


__all__ = ["PipelineStore", "PipelineArtifactMeta"]
