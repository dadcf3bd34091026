"""
Core do makepipe.

Este pacote reúne a implementação canônica do makepipe: o modelo de dados
do Segment, o motor de staleness/execução, o Pipeline e a configuração.

Componentes principais:
    - config     → carregamento e merge de configuração (YAML/JSON)
    - segment    → Segment, payloads Recipe/Source, oráculo de staleness e
                   projeção em grafo
    - pipeline   → coleção ordenada de Segments (build, clean, grafo)
    - exceptions → exceções tipadas
    - log        → logger `makepipe`

Princípios fundamentais:
    - Staleness é decidida apenas por data de modificação
    - Execução sequencial e síncrona
    - Nenhuma decisão silenciosa: falhas de validação são fatais
"""
