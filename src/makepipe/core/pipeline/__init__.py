"""
# Pipeline Core — makepipe

Este pacote define o **Pipeline**, contêiner ordenado dos Segments criados
por chamadas `make_*`.

## Princípios Fundamentais

- Segments são executados na ordem em que foram registrados
- Falhas de construção ou execução não alteram a coleção
- A projeção em grafo do Pipeline é a união das projeções dos Segments
"""

from .pipeline import Pipeline

__all__ = ["Pipeline"]
