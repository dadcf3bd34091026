"""
# Segment Core — makepipe

Este pacote define o **modelo de dados do Segment** e o **motor de
staleness/execução** que sustenta cada unidade de trabalho do makepipe.

## Componentes (folhas primeiro)

- **staleness**: oráculo de desatualização por mtime (`out_of_date`)
- **graph**: projeção tabular (pandas) em nós e arestas
- **context**: `ExecutionContext` e `RegisterContext`
- **segment**: `Segment` e os payloads `Recipe` / `Source`
- **register**: `make_register`, canal de registro de valores de scripts

## Invariantes

- Nenhum target aparece entre as dependencies (nem como script)
- A construção de um Segment é atômica: falha sem efeitos
- Uma instrução que falha não altera o resultado registrado no Segment
"""

from .context import REGISTER_KEY, ExecutionContext, RegisterContext
from .graph import EDGE_COLUMNS, NODE_COLUMNS, merge_nodes, new_edge, new_node, propagate_outdated
from .register import make_register
from .segment import Payload, Recipe, Segment, Source
from .staleness import find_package, out_of_date, package_mtime

__all__ = [
    "REGISTER_KEY",
    "ExecutionContext",
    "RegisterContext",
    "EDGE_COLUMNS",
    "NODE_COLUMNS",
    "merge_nodes",
    "new_edge",
    "new_node",
    "propagate_outdated",
    "make_register",
    "Payload",
    "Recipe",
    "Segment",
    "Source",
    "find_package",
    "out_of_date",
    "package_mtime",
]
