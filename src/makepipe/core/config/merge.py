"""
Resolução de overrides da configuração do makepipe.

Uma configuração é uma árvore de dicionários cujas folhas são escalares
ou listas. `deep_merge` sobrepõe uma árvore de override a uma árvore base:

    base     = {"execution": {"quiet": False, "force": False}}
    override = {"execution": {"quiet": True}}
    →          {"execution": {"quiet": True, "force": False}}

Regras por nó (`_merge_node`):
    - subárvore + subárvore → recursão
    - lista → substitui a lista da base por inteiro
    - base `None` → placeholder, aceita qualquer valor
    - demais folhas → o override deve ter o mesmo tipo da base

Conflitos são reportados com o caminho pontuado da chave
(ex.: `execution.quiet`), que é o que o usuário vê no arquivo YAML/JSON.
"""

from copy import deepcopy
from typing import Any, Dict, Tuple

from .errors import ConfigTypeConflictError


def _dotted(path: Tuple[str, ...]) -> str:
    return ".".join(str(p) for p in path) or "<root>"


def _merge_node(base: Any, override: Any, path: Tuple[str, ...]) -> Any:
    if isinstance(base, dict) and isinstance(override, dict):
        merged = {k: deepcopy(v) for k, v in base.items()}
        for key, value in override.items():
            merged[key] = (
                _merge_node(merged[key], value, path + (key,))
                if key in merged
                else deepcopy(value)
            )
        return merged

    if base is None or isinstance(override, list):
        return deepcopy(override)

    if type(base) is not type(override):
        raise ConfigTypeConflictError(
            f"Conflito de tipo em '{_dotted(path)}': "
            f"esperado {type(base).__name__}, recebido {type(override).__name__}"
        )
    return deepcopy(override)


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Sobrepõe `override` a `base` e devolve uma nova árvore (entradas intactas).

    Raises:
        ConfigTypeConflictError: Se a raiz não for dict ou se uma folha do
            override mudar o tipo da folha correspondente na base.
    """
    if not isinstance(base, dict) or not isinstance(override, dict):
        raise ConfigTypeConflictError(
            "A configuração deve ser um dicionário na raiz, recebido: "
            f"{type(base).__name__} / {type(override).__name__}"
        )
    return _merge_node(base, override, ())
