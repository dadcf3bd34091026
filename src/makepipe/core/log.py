"""Logger canônico do makepipe.

As notificações de execução são registradas como eventos estruturados no
`ExecutionContext` e repassadas ao logger `makepipe` da stdlib.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

LOGGER_NAME = "makepipe"

logger = logging.getLogger(LOGGER_NAME)


def configure_logging(config: Optional[Dict[str, Any]]) -> logging.Logger:
    """Aplica `logging.level` da configuração resolvida ao logger `makepipe`."""
    logging_cfg = (config or {}).get("logging", {}) or {}
    level = logging_cfg.get("level", "INFO")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Nível de log inválido: {logging_cfg.get('level')!r}")
    logger.setLevel(level)
    return logger


def level_number(level: str) -> int:
    value = logging.getLevelName(str(level).upper())
    return value if isinstance(value, int) else logging.INFO
