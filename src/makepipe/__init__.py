"""
makepipe — rastreamento de build no estilo Make, embutido em Python.

Em torno de uma unidade de trabalho arbitrária (uma recipe em Python ou um
script externo), o usuário declara os arquivos produzidos (targets), os
arquivos e packages dos quais eles dependem (dependencies, packages) e se
a execução deve ser forçada. O makepipe decide, por data de modificação,
se a unidade precisa ser (re)executada, executa quando necessário,
registra proveniência e tempo, e acumula cada unidade em um Pipeline
ordenado que pode ser reexecutado (`build`), limpo (`clean`), resumido e
projetado em grafo.

Arquitetura em alto nível:
    - core.segment     → Segment, oráculo de staleness, projeção em grafo
    - core.pipeline    → Pipeline (coleção ordenada de Segments)
    - core.config      → carregamento e merge de configuração
    - persistence      → save/load de Pipelines e Segments (joblib)
    - api              → Pipeline ativo e atalhos `make_*`

Limites explícitos:
    - Não é um agendador de tarefas: sem paralelismo
    - Sem hashing de conteúdo e sem cache remoto
    - Não desenha o grafo (apenas expõe nós e arestas tabulares)
"""

from .api import (
    configure,
    get_pipeline,
    make_register,
    make_with_recipe,
    make_with_source,
    reset_pipeline,
    set_pipeline,
)
from .core.pipeline import Pipeline
from .core.segment import ExecutionContext, Recipe, RegisterContext, Segment, Source, out_of_date

register = make_register

__version__ = "0.1.0"

__all__ = [
    "configure",
    "get_pipeline",
    "make_register",
    "make_with_recipe",
    "make_with_source",
    "register",
    "reset_pipeline",
    "set_pipeline",
    "Pipeline",
    "ExecutionContext",
    "Recipe",
    "RegisterContext",
    "Segment",
    "Source",
    "out_of_date",
]
