"""
ExecutionContext — contexto de execução de Segments do makepipe.

Este módulo define:
    - `ExecutionContext`: o handle explícito onde recipes são avaliadas e
      scripts são executados (um namespace mutável), acompanhado de um log
      estruturado de eventos
    - `RegisterContext`: store chave-valor isolado, criado a cada execução
      de um Segment com script, onde o script registra valores nomeados
    - `REGISTER_KEY`: chave reservada sob a qual o `RegisterContext` é
      vinculado no namespace do `ExecutionContext`

Princípios fundamentais:
    - O Segment é o único dono da referência ao seu contexto entre execuções
    - Um contexto pode ser substituído por inteiro, nunca mesclado
    - Notificações são eventos estruturados, não texto livre
"""

from __future__ import annotations

import pickle
import types
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Mapping, Optional

from makepipe.core.log import level_number, logger


# Chave reservada para o RegisterContext dentro do namespace de execução.
REGISTER_KEY = "__makepipe_register__"


@dataclass
class RegisterContext(Mapping[str, Any]):
    """
    Store chave-valor de valores registrados por um script.

    É o `result` de um Segment com script: cada chamada a
    `make_register(value, name)` dentro do script vincula `value` sob
    `name`, visível depois como `segment.result[name]`.
    """

    _values: Dict[str, Any] = field(default_factory=dict)

    def register(self, name: str, value: Any) -> Any:
        if not isinstance(name, str) or not name:
            raise ValueError("`name` must be a non-empty string")
        self._values[name] = value
        return value

    def __getitem__(self, name: str) -> Any:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._values)


@dataclass(eq=False)
class ExecutionContext:
    """
    Handle de execução de um Segment.

    Campos canônicos:
    - name: identificador textual do contexto (exibido em resumos)
    - namespace: globals onde recipes são avaliadas e scripts executados
    - events: log estruturado de notificações de execução
    - dropped: nomes descartados do namespace na última serialização

    Ao ser serializado (pickle/joblib), o namespace perde módulos e
    `__builtins__` (recriados pela próxima execução) e todo binding que
    não pode ser serializado: arquivos abertos, funções definidas por
    recipes, locks. Os nomes destes últimos ficam em `dropped` no
    contexto restaurado.
    """

    name: Optional[str] = None
    namespace: Dict[str, Any] = field(default_factory=dict)
    events: List[Dict[str, Any]] = field(default_factory=list)
    dropped: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.name is None:
            self.name = f"<context {id(self):#x}>"
        if not isinstance(self.name, str):
            raise TypeError("`name` must be a string")
        if not isinstance(self.namespace, dict):
            raise TypeError("`namespace` must be a dict")

    # -----------------------------
    # Namespace
    # -----------------------------
    def bind(self, key: str, value: Any) -> None:
        self.namespace[key] = value

    def lookup(self, key: str) -> Any:
        if key not in self.namespace:
            raise KeyError(key)
        return self.namespace[key]

    def __contains__(self, key: object) -> bool:
        return key in self.namespace

    def new_register(self) -> RegisterContext:
        """Aloca um RegisterContext novo e o vincula sob `REGISTER_KEY`."""
        register = RegisterContext()
        self.bind(REGISTER_KEY, register)
        return register

    # -----------------------------
    # Logging
    # -----------------------------
    def log(self, *, segment_id: Optional[int], level: str, message: str, **extra: Any) -> None:
        event = {
            "context": self.name,
            "segment_id": segment_id,
            "level": level,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        event.update(extra)
        self.events.append(event)
        logger.log(level_number(level), "[segment %s] %s", segment_id, message)

    # -----------------------------
    # Persistência
    # -----------------------------
    def __getstate__(self) -> Dict[str, Any]:
        namespace: Dict[str, Any] = {}
        dropped: List[str] = []
        for key, value in self.namespace.items():
            if key == "__builtins__" or isinstance(value, types.ModuleType):
                continue
            try:
                pickle.dumps(value)
            except (pickle.PicklingError, TypeError, AttributeError):
                dropped.append(key)
                continue
            namespace[key] = value

        if dropped:
            logger.warning(
                "Context %s: non-serializable bindings dropped on save: %s",
                self.name, ", ".join(dropped),
            )

        state = dict(self.__dict__)
        state["namespace"] = namespace
        state["dropped"] = dropped
        return state

    def __setstate__(self, state: Dict[str, Any]) -> None:
        state.setdefault("dropped", [])
        self.__dict__.update(state)
