"""
Camada de configuração do makepipe.

Este pacote contém os utilitários responsáveis por carregar, mesclar e
validar estruturalmente a configuração do makepipe.

Responsabilidades do pacote:
    - Carregamento de arquivos de configuração (YAML/JSON)
    - Resolução da configuração final via deep-merge determinístico
    - Leitura dos valores padrão usados pelo Pipeline (`quiet`, `force`)

Limites explícitos:
    - Não executa Segments
    - Não mantém estado global
"""

from .errors import (
    ConfigError,
    ConfigFileNotFoundError,
    ConfigTypeConflictError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
)
from .loader import DEFAULT_CONFIG, default_force, default_quiet, load_config
from .merge import deep_merge

__all__ = [
    "ConfigError",
    "ConfigFileNotFoundError",
    "ConfigTypeConflictError",
    "InvalidConfigRootTypeError",
    "UnsupportedConfigFormatError",
    "DEFAULT_CONFIG",
    "default_force",
    "default_quiet",
    "load_config",
    "deep_merge",
]
