"""
Testes do oráculo de staleness (`out_of_date`).

Os testes asseguram que:
- um target ausente sempre torna o conjunto desatualizado
- com tudo presente, desatualizado ⇔ max(mtime deps ∪ packages) > min(mtime targets)
- uma dependency ausente (com targets presentes) é um erro explícito
- packages contribuem com o instante de instalação
- a decisão é pura e determinística

Invariantes:
    - Nenhum teste depende do relógio: mtimes são fixados via `os.utime`
"""

import os

import pytest

from makepipe.core.exceptions import MissingDependencyError, MissingPackageError
from makepipe.core.segment.staleness import (
    as_str_list,
    find_package,
    out_of_date,
    package_mtime,
)
from tests._helpers import FUTURE, MID, NEW, OLD


def test_missing_target_is_out_of_date(make_file, tmp_path):
    dep = make_file("in.txt", mtime=NEW)
    assert out_of_date([str(tmp_path / "out.bin")], [dep]) is True


def test_missing_target_wins_over_missing_dependency(tmp_path):
    """Um target ausente decide antes de qualquer verificação de dependency."""
    assert out_of_date(str(tmp_path / "out.bin"), str(tmp_path / "nope.txt")) is True


def test_one_missing_target_among_many(make_file, tmp_path):
    present = make_file("a.txt", mtime=NEW)
    assert out_of_date([present, str(tmp_path / "b.txt")]) is True


def test_dependency_newer_than_target(make_file):
    target = make_file("out.txt", mtime=OLD)
    dep = make_file("in.txt", mtime=NEW)
    assert out_of_date([target], [dep]) is True


def test_target_newer_than_dependency(make_file):
    target = make_file("out.txt", mtime=NEW)
    dep = make_file("in.txt", mtime=OLD)
    assert out_of_date([target], [dep]) is False


def test_equal_mtimes_are_up_to_date(make_file):
    """A comparação é estrita: mesma data não desatualiza."""
    target = make_file("out.txt", mtime=MID)
    dep = make_file("in.txt", mtime=MID)
    assert out_of_date([target], [dep]) is False


def test_compares_latest_dependency_with_earliest_target(make_file):
    t_old = make_file("t1.txt", mtime=OLD + 10)
    t_new = make_file("t2.txt", mtime=NEW)
    d_old = make_file("d1.txt", mtime=OLD)
    d_mid = make_file("d2.txt", mtime=MID)

    # MID > OLD + 10 (target mais antigo)
    assert out_of_date([t_old, t_new], [d_old, d_mid]) is True
    # todas as dependencies mais antigas que todos os targets
    os.utime(t_old, (MID + 1, MID + 1))
    assert out_of_date([t_old, t_new], [d_old, d_mid]) is False


def test_no_dependencies_and_no_packages_is_up_to_date(make_file):
    target = make_file("out.txt", mtime=OLD)
    assert out_of_date([target]) is False
    assert out_of_date([target], [], []) is False


def test_missing_dependency_raises(make_file, tmp_path):
    target = make_file("out.txt", mtime=NEW)
    missing = str(tmp_path / "missing.txt")
    with pytest.raises(MissingDependencyError) as exc_info:
        out_of_date([target], [missing])
    assert exc_info.value.details["missing"] == [missing]
    assert isinstance(exc_info.value, FileNotFoundError)


def test_accepts_single_paths_and_pathlike(make_file, tmp_path):
    make_file("out.txt", mtime=OLD)
    make_file("in.txt", mtime=NEW)
    assert out_of_date(tmp_path / "out.txt", tmp_path / "in.txt") is True


def test_package_installed_after_target_is_out_of_date(make_file):
    target = make_file("out.txt", mtime=OLD)
    assert out_of_date([target], [], ["pytest"]) is True


def test_package_installed_before_target_is_up_to_date(make_file):
    target = make_file("out.txt", mtime=FUTURE)
    assert out_of_date([target], [], ["pytest"]) is False


def test_package_mtime_matches_install_metadata():
    stamp = package_mtime("pytest")
    assert isinstance(stamp, float)
    assert OLD < stamp < FUTURE


def test_find_package_accepts_import_name():
    """`yaml` é o nome importável da distribuição PyYAML."""
    dist = find_package("yaml")
    assert dist.metadata["Name"].lower() == "pyyaml"


def test_find_package_unknown_raises():
    with pytest.raises(MissingPackageError):
        find_package("makepipe-definitely-not-installed-pkg")


def test_decision_is_deterministic(make_file):
    target = make_file("out.txt", mtime=OLD)
    dep = make_file("in.txt", mtime=NEW)
    assert {out_of_date([target], [dep]) for _ in range(5)} == {True}
    # nenhuma escrita no filesystem
    assert os.path.getmtime(target) == OLD


def test_as_str_list_normalizes_inputs(tmp_path):
    assert as_str_list(None) == []
    assert as_str_list("a.txt") == ["a.txt"]
    assert as_str_list(tmp_path) == [str(tmp_path)]
    assert as_str_list(("a", "b")) == ["a", "b"]
