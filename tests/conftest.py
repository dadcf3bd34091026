"""
Fixtures compartilhados para testes do makepipe.

Este módulo define fixtures reutilizáveis que fornecem:
- arquivos em `tmp_path` com mtimes explícitos e determinísticos
- contexto de execução controlado (ExecutionContext)
- configuração mínima e silenciosa
- Pipeline isolado

Decisões arquiteturais:
    - Datas de modificação são fixadas via `os.utime`, nunca inferidas do relógio
    - Cada teste recebe seu próprio ExecutionContext e Pipeline
    - O Pipeline ativo da API de módulo é resetado ao final de cada teste

Invariantes:
    - Nenhuma fixture escreve fora de `tmp_path`
    - Nenhuma fixture depende de estado global deixado por outro teste
"""

import os

import pytest

from tests._helpers import OLD


@pytest.fixture
def make_file(tmp_path):
    """
    Fixture que fornece uma fábrica de arquivos com mtime controlado.

    Uso:
        path = make_file("in.txt", mtime=OLD)

    Returns:
        Callable[[str, int | None, str], str]: cria o arquivo em `tmp_path`
        e devolve o caminho absoluto como string.
    """

    def _make(name, mtime=None, content="x"):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        if mtime is not None:
            os.utime(path, (mtime, mtime))
        return str(path)

    return _make


@pytest.fixture
def make_script(make_file):
    """Fábrica de scripts Python (dependência do Segment `Source`)."""

    def _make(name, body, mtime=OLD):
        return make_file(name, mtime=mtime, content=body)

    return _make


@pytest.fixture
def ctx():
    from makepipe.core.segment.context import ExecutionContext

    return ExecutionContext(name="test-context")


@pytest.fixture
def quiet_config() -> dict:
    """Configuração mínima resolvida com notificações desligadas."""
    return {
        "execution": {"quiet": True, "force": False},
        "logging": {"level": "INFO"},
    }


@pytest.fixture
def pipeline(quiet_config):
    from makepipe.core.pipeline import Pipeline

    return Pipeline(config=quiet_config)


@pytest.fixture(autouse=True)
def _reset_active_pipeline():
    yield
    from makepipe import api

    api._PIPELINE = None
