"""
API de módulo do makepipe.

Expõe um Pipeline ativo de processo e atalhos `make_*` que registram
Segments nele, no estilo de um Makefile escrito em Python:

    from makepipe import make_with_recipe, make_with_source

    make_with_recipe(
        "import shutil; shutil.copy('raw.csv', 'clean.csv')",
        targets="clean.csv",
        dependencies="raw.csv",
    )
    make_with_source("report.py", targets="report.html", dependencies="clean.csv")

Limites explícitos:
    - Não é thread-safe (a execução do makepipe é sequencial)
    - Não persiste o Pipeline ativo (ver `makepipe.persistence`)
"""

from __future__ import annotations

import ast
import inspect
import os
from types import FrameType
from typing import Any, Dict, Optional, Union

from makepipe.core.config import load_config
from makepipe.core.log import configure_logging
from makepipe.core.pipeline import Pipeline
from makepipe.core.segment import ExecutionContext, Segment, make_register

_PIPELINE: Optional[Pipeline] = None


def _caller_context(frame: Optional[FrameType]) -> ExecutionContext:
    """Contexto novo semeado com uma cópia dos globals e locals de quem chamou `frame`."""
    caller = frame.f_back if frame is not None else None
    try:
        namespace: Dict[str, Any] = {}
        if caller is not None:
            namespace.update(caller.f_globals)
            namespace.update(caller.f_locals)
        return ExecutionContext(namespace=namespace)
    finally:
        del frame, caller


def get_pipeline() -> Pipeline:
    """Retorna o Pipeline ativo, criando-o com a configuração padrão se necessário."""
    global _PIPELINE
    if _PIPELINE is None:
        _PIPELINE = Pipeline()
    return _PIPELINE


def set_pipeline(pipeline: Pipeline) -> Pipeline:
    global _PIPELINE
    if not isinstance(pipeline, Pipeline):
        raise TypeError("`pipeline` must be a Pipeline")
    _PIPELINE = pipeline
    return pipeline


def reset_pipeline(config: Optional[Dict[str, Any]] = None) -> Pipeline:
    """Descarta o Pipeline ativo e cria um vazio."""
    return set_pipeline(Pipeline(config=config) if config is not None else Pipeline())


def configure(
    *,
    defaults_path: Optional[str] = None,
    local_path: Optional[str] = None,
) -> Dict[str, Any]:
    """Carrega a configuração, aplica o nível de log e a instala no Pipeline ativo."""
    config = load_config(defaults_path=defaults_path, local_path=local_path)
    configure_logging(config)
    get_pipeline().config = config
    return config


def make_with_recipe(
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
    """
    Executa `recipe` se `targets` estiverem desatualizados e registra o Segment.

    Sem `context`, a recipe roda em uma cópia do namespace de quem chama:
    enxerga as variáveis do chamador, mas novos bindings não vazam para ele.
    """
    if context is None:
        context = _caller_context(inspect.currentframe())
    return get_pipeline().make_with_recipe(
        recipe, targets, dependencies, packages,
        context=context, force=force, label=label, note=note, quiet=quiet,
    )


def make_with_source(
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
    """Executa o script `source` se `targets` estiverem desatualizados e registra o Segment."""
    if context is None:
        context = _caller_context(inspect.currentframe())
    return get_pipeline().make_with_source(
        source, targets, dependencies, packages,
        context=context, force=force, label=label, note=note, quiet=quiet,
    )


__all__ = [
    "configure",
    "get_pipeline",
    "make_register",
    "make_with_recipe",
    "make_with_source",
    "reset_pipeline",
    "set_pipeline",
]
