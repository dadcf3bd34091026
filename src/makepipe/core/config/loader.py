"""
Loader canônico de configuração do makepipe.

Este módulo é responsável por carregar, validar estruturalmente e resolver
a configuração efetiva utilizada pelo Pipeline e pela API de módulo.

A configuração é resolvida a partir de (em ordem de precedência crescente):
    - defaults embutidos (`DEFAULT_CONFIG`)
    - um arquivo de defaults do projeto (opcional)
    - um arquivo local de overrides (opcional, ignorado se ausente)

Princípios fundamentais:
    - Configuração é declarativa e explícita
    - Nenhuma heurística implícita é aplicada
    - Erros estruturais são tratados como falhas fatais

Invariantes:
    - O resultado é sempre um dicionário puro (`dict`)
    - Overrides nunca mutam os defaults
    - Todas as chaves de `DEFAULT_CONFIG` estão presentes no resultado

Limites explícitos:
    - Não interage com Segments
    - Não aplica a configuração (ver `makepipe.core.log.configure_logging`)
"""

from pathlib import Path
from typing import Any, Dict, Optional
import json

import yaml  # PyYAML

from .merge import deep_merge
from .errors import (
    ConfigFileNotFoundError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
)


DEFAULT_CONFIG: Dict[str, Any] = {
    "execution": {
        "quiet": False,
        "force": False,
    },
    "logging": {
        "level": "INFO",
    },
}


def _load_file(path: Path) -> Dict[str, Any]:
    """
    Carrega um arquivo de configuração e valida sua estrutura básica.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)

    Arquivos vazios são interpretados como dicionários vazios.

    Raises:
        ConfigFileNotFoundError: Se o arquivo não existir.
        UnsupportedConfigFormatError: Se o formato do arquivo não for suportado.
        InvalidConfigRootTypeError: Se o conteúdo raiz não for um dicionário.
    """
    if not path.exists():
        raise ConfigFileNotFoundError(f"Arquivo de configuração não encontrado: {path}")

    suffix = path.suffix.lower()

    if suffix in {".yaml", ".yml"}:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

    elif suffix == ".json":
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)

    else:
        raise UnsupportedConfigFormatError(f"Formato não suportado: {path.suffix}")

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise InvalidConfigRootTypeError(
            f"Config root deve ser dict, recebido: {type(data).__name__}"
        )

    return data


def load_config(
    *,
    defaults_path: Optional[str] = None,
    local_path: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Carrega e resolve a configuração efetiva do makepipe.

    Política de resolução:
        - `DEFAULT_CONFIG` é sempre a base
        - `defaults_path`, quando informado, deve existir
        - `local_path` é opcional e ignorado quando o arquivo não existe
        - A resolução utiliza `deep_merge` com política determinística

    Args:
        defaults_path (Optional[str]): Caminho para o arquivo de defaults do projeto.
        local_path (Optional[str]): Caminho opcional para overrides locais.

    Returns:
        Dict[str, Any]: Configuração final resolvida.

    Raises:
        ConfigFileNotFoundError: Se `defaults_path` não existir.
        UnsupportedConfigFormatError: Se o formato do arquivo não for suportado.
        InvalidConfigRootTypeError: Se o conteúdo não for um dicionário.
        ConfigTypeConflictError: Se ocorrer conflito estrutural durante o merge.
    """
    effective = deep_merge(DEFAULT_CONFIG, {})

    if defaults_path is not None:
        effective = deep_merge(effective, _load_file(Path(defaults_path)))

    if local_path is not None:
        local_file = Path(local_path)
        if local_file.exists():
            effective = deep_merge(effective, _load_file(local_file))

    return effective


def default_quiet(config: Optional[Dict[str, Any]]) -> bool:
    """Verbosidade padrão (`execution.quiet`) da configuração resolvida."""
    execution = (config or {}).get("execution", {}) or {}
    return bool(execution.get("quiet", False))


def default_force(config: Optional[Dict[str, Any]]) -> bool:
    """Flag `force` padrão (`execution.force`) da configuração resolvida."""
    execution = (config or {}).get("execution", {}) or {}
    return bool(execution.get("force", False))
