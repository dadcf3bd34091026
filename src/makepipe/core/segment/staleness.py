"""
Oráculo de staleness do makepipe.

Este módulo decide se os targets de um Segment estão desatualizados em
relação às suas dependencies e packages, usando exclusivamente datas de
modificação (mtime) do filesystem.

Política de decisão (v1):
    - Se algum target não existe → desatualizado
    - Se alguma dependency não existe (com todos os targets presentes)
      → `MissingDependencyError`
    - Caso contrário, desatualizado se e somente se
      max(mtime(dependencies) ∪ mtime(packages)) > min(mtime(targets))
    - Sem dependencies e sem packages → atualizado

O "mtime" de um package é o instante de instalação/atualização da
distribuição, aproximado pela data de modificação dos seus arquivos de
metadados (`*.dist-info` / `*.egg-info`).

Invariantes:
    - Funções puras: nenhuma escrita no filesystem
    - Resultado determinístico para um estado fixo do filesystem

Limites explícitos:
    - Não usa hashing de conteúdo
    - Não consulta caches remotos
    - Não executa Segments
"""

from __future__ import annotations

import os
from importlib import metadata
from pathlib import Path
from typing import Iterable, List, Optional, Union

from makepipe.core.exceptions import MissingDependencyError, MissingPackageError


PathsLike = Union[str, "os.PathLike[str]", Iterable[Union[str, "os.PathLike[str]"]]]

_METADATA_SUFFIXES = (".dist-info", ".egg-info")


def as_str_list(value: Optional[PathsLike]) -> List[str]:
    """Normaliza `None`, um caminho único ou um iterável de caminhos para `List[str]`."""
    if value is None:
        return []
    if isinstance(value, (str, os.PathLike)):
        return [os.fspath(value)]
    return [os.fspath(v) for v in value]


def find_package(name: str) -> metadata.Distribution:
    """
    Resolve um package instalado pelo nome.

    Aceita tanto o nome da distribuição (ex.: ``PyYAML``) quanto o nome do
    pacote importável de topo (ex.: ``yaml``).

    Raises:
        MissingPackageError: Se nenhuma distribuição instalada corresponder a `name`.
    """
    try:
        return metadata.distribution(name)
    except metadata.PackageNotFoundError:
        pass

    for dist_name in metadata.packages_distributions().get(name, []):
        try:
            return metadata.distribution(dist_name)
        except metadata.PackageNotFoundError:
            continue

    raise MissingPackageError(
        f"Package não encontrado: {name!r}",
        details={"package": name},
        hint="Instale o package ou remova-o de `packages`.",
    )


def package_mtime(name: str) -> float:
    """Instante (epoch) de instalação/atualização do package `name`."""
    dist = find_package(name)

    stamps: List[float] = []
    for f in dist.files or []:
        if f.parts and f.parts[0].endswith(_METADATA_SUFFIXES):
            located = Path(str(f.locate()))
            if located.exists():
                stamps.append(located.stat().st_mtime)

    if stamps:
        return max(stamps)

    # sem RECORD: usa o diretório onde a distribuição foi localizada
    return Path(str(dist.locate_file(""))).stat().st_mtime


def out_of_date(
    targets: PathsLike,
    dependencies: Optional[PathsLike] = None,
    packages: Optional[Iterable[str]] = None,
) -> bool:
    """
    Decide se `targets` estão desatualizados.

    Args:
        targets: Caminho(s) dos arquivos produzidos.
        dependencies: Caminho(s) dos arquivos dos quais os targets dependem.
        packages: Nomes de packages dos quais os targets dependem.

    Returns:
        bool: True se algum target não existe ou se alguma dependency/package
        é estritamente mais nova que o target mais antigo.

    Raises:
        MissingDependencyError: Se uma dependency não existe e todos os targets existem.
        MissingPackageError: Se um package não está instalado.
    """
    target_list = as_str_list(targets)
    if not all(os.path.exists(t) for t in target_list):
        return True

    dependency_list = as_str_list(dependencies)
    missing = [d for d in dependency_list if not os.path.exists(d)]
    if missing:
        raise MissingDependencyError(
            "Uma ou mais `dependencies` não existem",
            details={"missing": missing},
            hint="Crie as dependencies (ou o Segment que as produz) antes de executar.",
        )

    times = [os.path.getmtime(d) for d in dependency_list]
    times.extend(package_mtime(p) for p in (packages or []))
    if not times:
        return False

    last_dependency_change = max(times)
    first_target_change = min(os.path.getmtime(t) for t in target_list)
    return last_dependency_change > first_target_change
