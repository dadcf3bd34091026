"""Registro explícito de valores a partir de scripts executados por um Segment `Source`."""

from __future__ import annotations

import inspect
from typing import Any

from makepipe.core.log import logger

from .context import REGISTER_KEY, RegisterContext


def make_register(value: Any, name: str, quiet: bool = False) -> Any:
    """
    Registra `value` sob `name` no `RegisterContext` da execução corrente.

    Deve ser chamado de dentro de um script executado por um Segment
    `Source`: o `RegisterContext` é procurado nos globals de quem chama,
    sob `REGISTER_KEY`. O valor fica disponível depois como
    `segment.result[name]`.

    Fora de uma execução, nada é registrado e um aviso é emitido
    (a menos que `quiet`).

    Returns:
        O próprio `value`.
    """
    frame = inspect.currentframe()
    caller = frame.f_back if frame is not None else None
    try:
        register = caller.f_globals.get(REGISTER_KEY) if caller is not None else None
    finally:
        del frame, caller

    if not isinstance(register, RegisterContext):
        if not quiet:
            logger.warning(
                "make_register() called outside of a Source segment; %r was not registered",
                name,
            )
        return value

    return register.register(name, value)
