"""
Projeção de Segments em grafo (nós e arestas tabulares).

Este módulo transforma os elementos de um Segment (dependencies,
packages, a instrução e os targets) em tabelas `pandas.DataFrame` de
nós e arestas.

Esquema de nós (`NODE_COLUMNS`):
    - id: identidade textual do nó (caminho, nome de package ou instrução)
    - source: nó nunca produzido pelo Segment (dependency ou package)
    - instruction: nó que representa a instrução
    - package: nó que representa um package

Esquema de arestas (`EDGE_COLUMNS`):
    - from / to: ids dos nós
    - arrows: direção da seta (sempre "to")
    - source: aresta que parte de um nó source
    - recipe: aresta dependency→instrução de um Segment com recipe
    - package: aresta que parte de um package
    - outdated: a aresta leva a targets desatualizados
    - segment_id: Segment dono da aresta

Decisões arquiteturais:
    - A identidade dos nós é textual, e não indexada por Segment, para que
      projeções de vários Segments sejam compatíveis por concatenação
    - Funções são puras: entradas nunca são mutadas

Invariantes:
    - A mesma entrada produz sempre as mesmas tabelas
    - Arestas de nós source nunca são marcadas como desatualizadas pela
      propagação entre Segments

Limites explícitos:
    - Não desenha grafos
    - Não consulta o filesystem
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Sequence

import pandas as pd


NODE_COLUMNS: List[str] = ["id", "source", "instruction", "package"]
EDGE_COLUMNS: List[str] = [
    "from", "to", "arrows", "source", "recipe", "package", "outdated", "segment_id",
]

_BOOL_COLUMNS = ("source", "instruction", "package", "recipe", "outdated")


def _typed(rows: List[Dict[str, Any]], columns: Sequence[str]) -> pd.DataFrame:
    frame = pd.DataFrame(rows, columns=list(columns))
    for col in columns:
        if col in _BOOL_COLUMNS:
            frame[col] = frame[col].astype(bool)
        elif col == "segment_id":
            frame[col] = frame[col].astype("int64")
        else:
            frame[col] = frame[col].astype(object)
    return frame


def empty_nodes() -> pd.DataFrame:
    return _typed([], NODE_COLUMNS)


def empty_edges() -> pd.DataFrame:
    return _typed([], EDGE_COLUMNS)


def new_edge(
    from_: Iterable[str],
    to: Iterable[str],
    *,
    source: bool,
    recipe: bool,
    package: bool,
    segment_id: int,
) -> pd.DataFrame:
    """
    Cria as arestas de todos os nós em `from_` para todos os nós em `to`.

    Todas as arestas nascem com `outdated=False`; a marcação é
    responsabilidade do Segment.
    """
    to_list = list(to)
    rows = [
        {
            "from": f,
            "to": t,
            "arrows": "to",
            "source": source,
            "recipe": recipe,
            "package": package,
            "outdated": False,
            "segment_id": segment_id,
        }
        for f in from_
        for t in to_list
    ]
    return _typed(rows, EDGE_COLUMNS)


def new_node(
    ids: Iterable[str],
    *,
    source: bool,
    instruction: bool,
    package: bool,
) -> pd.DataFrame:
    """Cria um nó por id com as flags informadas."""
    rows = [
        {"id": i, "source": source, "instruction": instruction, "package": package}
        for i in ids
    ]
    return _typed(rows, NODE_COLUMNS)


def concat_frames(frames: Iterable[pd.DataFrame], columns: Sequence[str]) -> pd.DataFrame:
    """Concatena tabelas ignorando as vazias; preserva o esquema quando todas são vazias."""
    non_empty = [f for f in frames if f is not None and not f.empty]
    if not non_empty:
        return _typed([], columns)
    out = pd.concat(non_empty, ignore_index=True)
    return out[list(columns)]


def merge_nodes(nodes: pd.DataFrame) -> pd.DataFrame:
    """
    Une nós repetidos (mesmo `id`) vindos de Segments diferentes.

    Um caminho que é dependency de um Segment e target de outro deixa de
    ser source: `source` é verdadeiro apenas se o nó for source em todas
    as projeções. `instruction` e `package` são combinados por "ou".
    """
    if nodes.empty:
        return empty_nodes()

    merged = (
        nodes.groupby("id", sort=False)
        .agg(
            source=("source", "all"),
            instruction=("instruction", "any"),
            package=("package", "any"),
        )
        .reset_index()
    )
    return merged[NODE_COLUMNS]


def propagate_outdated(edges: pd.DataFrame) -> pd.DataFrame:
    """
    Propaga o estado desatualizado entre Segments.

    Se um target desatualizado de um Segment é entrada (dependency) de
    outro Segment, todas as arestas não-source deste último também ficam
    desatualizadas. A propagação é transitiva e termina porque a marcação
    é monotônica.

    Returns:
        pd.DataFrame: Nova tabela de arestas (a entrada não é mutada).
    """
    out = edges.copy()
    if out.empty:
        return out

    produced = ~out["source"]
    while True:
        stale_targets = set(out.loc[produced & out["outdated"], "to"])
        feeds_stale = out["source"] & out["from"].isin(stale_targets)
        stale_segments = set(out.loc[feeds_stale, "segment_id"])
        mask = produced & out["segment_id"].isin(stale_segments) & ~out["outdated"]
        if not mask.any():
            break
        out.loc[mask, "outdated"] = True

    return out
