"""
makepipe — Canonical Exceptions (v1)

Este módulo define as exceções tipadas internas do makepipe.

Objetivo:
- Permitir que Segment/Pipeline levantem exceções semânticas tipadas
- Carregar dados estruturados (details/hint) para diagnóstico
- Evitar ValueError/TypeError genéricos em guardrails críticos

Regras:
- Falhas de construção são fatais: nenhum Segment parcial é criado.
- Exceções herdam também da exceção builtin equivalente (ValueError,
  TypeError, FileNotFoundError, KeyError), para captura idiomática.
- Exceções devem carregar apenas dados estruturados (serializáveis).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional


@dataclass(eq=False)
class MakepipeError(Exception):
    """Base class para exceções internas do makepipe.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - Mensagem deve ser curta e humana
    """

    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro."""
        out = asdict(self)
        out["type"] = self.__class__.__name__
        return out


# ---------------------------------------------------------------------------
# Construção / validação de Segment
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class SegmentValidationError(MakepipeError, ValueError):
    """Segment inválido: a construção é abortada sem efeitos."""


@dataclass(eq=False)
class SegmentTypeError(SegmentValidationError, TypeError):
    """Campo do Segment com tipo incompatível."""


@dataclass(eq=False)
class TargetDependencyOverlapError(SegmentValidationError):
    """Um target também aparece entre as dependencies."""


@dataclass(eq=False)
class TargetSourceOverlapError(SegmentValidationError):
    """Um target coincide com o script (source) do Segment."""


@dataclass(eq=False)
class SourceNotFoundError(SegmentValidationError):
    """O script (source) declarado não existe."""


@dataclass(eq=False)
class MissingPackageError(SegmentValidationError):
    """Um package declarado não está instalado."""


@dataclass(eq=False)
class InvalidRecipeError(SegmentValidationError):
    """A recipe não é código Python válido."""


# ---------------------------------------------------------------------------
# Execução
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class InvalidContextError(MakepipeError, TypeError):
    """O contexto de execução informado não é um ExecutionContext."""


@dataclass(eq=False)
class MissingDependencyError(MakepipeError, FileNotFoundError):
    """Uma dependency não existe no filesystem no momento do teste de staleness."""


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class UnknownSegmentError(MakepipeError, KeyError):
    """Nenhum Segment com o id solicitado existe no Pipeline."""

    def __str__(self) -> str:
        return self.message
