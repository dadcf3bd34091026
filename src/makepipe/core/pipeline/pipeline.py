"""
Pipeline — coleção ordenada de Segments do makepipe.

Este módulo define o `Pipeline`, o contêiner que acumula cada Segment
criado por uma chamada `make_*`, preservando a ordem de criação, e que
permite reexecutar (`build`), limpar (`clean`), resumir e projetar em
grafo o conjunto completo.

Responsabilidades do módulo:
    - Atribuir ids únicos e estáveis aos Segments
    - Preservar a ordem de registro dos Segments
    - Substituir um Segment quando um novo declara o mesmo conjunto de targets
    - Unir as projeções de grafo de todos os Segments

Decisões arquiteturais:
    - A ordem de registro é mantida separadamente da estrutura de armazenamento
    - Um Segment só entra no Pipeline depois de construído e executado com
      sucesso; falhas deixam a coleção inalterada
    - `quiet` e `force` padrão vêm da configuração, mas são sempre
      repassados explicitamente ao Segment

Invariantes:
    - Cada Segment registrado possui um `id` único
    - A lista de Segments reflete exatamente a ordem de registro
    - `clean` nunca toca nos targets em disco

Limites explícitos:
    - Não executa Segments em paralelo
    - Não reordena Segments por dependência
    - Não desenha o grafo
"""

from __future__ import annotations

import ast
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, TextIO, Union

import pandas as pd

from makepipe.core.config import default_force, default_quiet, load_config
from makepipe.core.exceptions import UnknownSegmentError
from makepipe.core.segment.context import ExecutionContext
from makepipe.core.segment.graph import (
    EDGE_COLUMNS,
    NODE_COLUMNS,
    concat_frames,
    merge_nodes,
    propagate_outdated,
)
from makepipe.core.segment.segment import Recipe, Segment, Source
from makepipe.core.segment.staleness import as_str_list


@dataclass
class Pipeline:
    """
    Coleção ordenada de Segments.

    Campos:
        - config: configuração resolvida (`load_config()` por padrão)
    """

    config: Dict[str, Any] = field(default_factory=load_config)

    _segments: Dict[int, Segment] = field(default_factory=dict, init=False, repr=False)
    _order: List[int] = field(default_factory=list, init=False, repr=False)

    # -----------------------------
    # Coleção
    # -----------------------------
    @property
    def segments(self) -> List[Segment]:
        return [self._segments[sid] for sid in self._order]

    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self) -> Iterator[Segment]:
        return iter(self.segments)

    def get_segment(self, segment_id: int) -> Segment:
        if segment_id not in self._segments:
            raise UnknownSegmentError(
                f"Segment não encontrado: {segment_id}",
                details={"segment_id": segment_id},
            )
        return self._segments[segment_id]

    def add_segment(self, segment: Segment) -> Segment:
        """Registra `segment`; um id já existente é substituído na mesma posição."""
        if not isinstance(segment, Segment):
            raise TypeError("`segment` must be a Segment")
        if segment.id not in self._segments:
            self._order.append(segment.id)
        self._segments[segment.id] = segment
        return segment

    def _segment_id_for(self, targets: Any) -> int:
        next_id = max(self._order, default=0) + 1
        try:
            wanted = set(as_str_list(targets))
        except TypeError:
            # targets inválidos: a construção do Segment levanta o erro tipado
            return next_id
        for sid in self._order:
            if set(self._segments[sid].targets) == wanted:
                return sid
        return next_id

    # -----------------------------
    # make_*
    # -----------------------------
    def _make(
        self,
        payload: Union[Recipe, Source],
        targets: Any,
        dependencies: Any,
        packages: Any,
        context: Optional[ExecutionContext],
        force: Optional[bool],
        label: Optional[str],
        note: Optional[str],
        quiet: Optional[bool],
    ) -> Segment:
        segment = Segment(
            self._segment_id_for(targets),
            payload,
            targets,
            dependencies,
            packages,
            context=context if context is not None else ExecutionContext(),
            force=default_force(self.config) if force is None else force,
        )
        segment.annotate(label=label, note=note)
        segment.execute(quiet=default_quiet(self.config) if quiet is None else quiet)
        return self.add_segment(segment)

    def make_with_recipe(
        self,
        recipe: Union[str, ast.AST],
        targets: Any,
        dependencies: Any = None,
        packages: Any = None,
        *,
        context: Optional[ExecutionContext] = None,
        force: Optional[bool] = None,
        label: Optional[str] = None,
        note: Optional[str] = None,
        quiet: Optional[bool] = None,
    ) -> Segment:
        """Cria, executa (se necessário) e registra um Segment com recipe."""
        return self._make(
            Recipe.parse(recipe), targets, dependencies, packages,
            context, force, label, note, quiet,
        )

    def make_with_source(
        self,
        source: Union[str, "os.PathLike[str]"],
        targets: Any,
        dependencies: Any = None,
        packages: Any = None,
        *,
        context: Optional[ExecutionContext] = None,
        force: Optional[bool] = None,
        label: Optional[str] = None,
        note: Optional[str] = None,
        quiet: Optional[bool] = None,
    ) -> Segment:
        """Cria, executa (se necessário) e registra um Segment com script externo."""
        return self._make(
            Source.parse(source), targets, dependencies, packages,
            context, force, label, note, quiet,
        )

    # -----------------------------
    # build / clean
    # -----------------------------
    def build(self, quiet: Optional[bool] = None) -> "Pipeline":
        """Reexecuta todos os Segments na ordem de registro."""
        q = default_quiet(self.config) if quiet is None else quiet
        for segment in self.segments:
            segment.execute(quiet=q)
        return self

    def clean(self) -> "Pipeline":
        """Zera `executed`, `result` e `execution_time` de todos os Segments."""
        for segment in self.segments:
            segment.update_result(False, None, None)
        return self

    # -----------------------------
    # Grafo
    # -----------------------------
    @property
    def nodes(self) -> pd.DataFrame:
        return merge_nodes(concat_frames((s.nodes for s in self.segments), NODE_COLUMNS))

    @property
    def edges(self) -> pd.DataFrame:
        return propagate_outdated(concat_frames((s.edges for s in self.segments), EDGE_COLUMNS))

    def outdated_segments(self) -> List[int]:
        """Ids dos Segments cujos targets estão (ou ficarão) desatualizados."""
        edges = self.edges
        if edges.empty:
            return []
        stale = set(edges.loc[edges["outdated"], "segment_id"])
        return [sid for sid in self._order if sid in stale]

    # -----------------------------
    # Resumo
    # -----------------------------
    @property
    def text_summary(self) -> List[str]:
        out: List[str] = []
        for segment in self.segments:
            out += segment.text_summary
            out.append("")
        return out

    def __str__(self) -> str:
        return "\n".join(["# makepipe pipeline", "", *self.text_summary])

    def print_summary(self, file: Optional[TextIO] = None) -> None:
        print(str(self), file=file)
