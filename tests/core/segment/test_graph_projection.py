"""
Testes da projeção de Segments em grafo (`nodes` / `edges`).

Os testes asseguram que:
- nós e arestas seguem o esquema tabular canônico
- dependencies e packages são nós source; targets e instrução não são
- a marcação `outdated` segue o oráculo de staleness
- arestas que partem de nós source nunca ficam desatualizadas
- uma dependency efetiva ausente desatualiza todas as arestas produzidas

Limites explícitos:
    - Não testa renderização (o makepipe não desenha grafos)
"""

try:
    import pandas as pd

    from makepipe.core.segment.graph import (
        EDGE_COLUMNS,
        NODE_COLUMNS,
        merge_nodes,
        new_edge,
        new_node,
        propagate_outdated,
    )
    from makepipe.core.segment.segment import Segment
except Exception as e:  # noqa: BLE001
    pd = None
    Segment = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None

from tests._helpers import FUTURE, NEW, OLD


def _require_imports():
    if _IMPORT_ERR is not None:
        raise AssertionError(f"Falha ao importar a projeção em grafo: {_IMPORT_ERR}")


def _edge(edges, from_, to):
    row = edges[(edges["from"] == from_) & (edges["to"] == to)]
    assert len(row) == 1, f"aresta ausente ou duplicada: {from_} → {to}"
    return row.iloc[0]


# ---------------------------------------------------------------------------
# Esquema
# ---------------------------------------------------------------------------

def test_segment_nodes_schema_and_flags(make_file, ctx):
    _require_imports()
    dep = make_file("in.txt", mtime=OLD)
    target = make_file("out.txt", mtime=NEW)
    seg = Segment.from_recipe(1, "1 + 1", [target], [dep], ["pytest"], context=ctx)

    nodes = seg.nodes
    assert list(nodes.columns) == NODE_COLUMNS
    assert list(nodes["id"]) == ["1 + 1", target, dep, "pytest"]

    by_id = nodes.set_index("id")
    assert by_id.loc["1 + 1", "instruction"] and not by_id.loc["1 + 1", "source"]
    assert not by_id.loc[target, "source"]
    assert by_id.loc[dep, "source"] and not by_id.loc[dep, "package"]
    assert by_id.loc["pytest", "source"] and by_id.loc["pytest", "package"]


def test_segment_edges_schema(make_file, ctx):
    _require_imports()
    dep = make_file("in.txt", mtime=OLD)
    t1 = make_file("a.txt", mtime=NEW)
    t2 = make_file("b.txt", mtime=NEW)
    seg = Segment.from_recipe(7, "x = 1", [t1, t2], [dep], context=ctx)

    edges = seg.edges
    assert list(edges.columns) == EDGE_COLUMNS
    assert len(edges) == 3
    assert set(edges["arrows"]) == {"to"}
    assert set(edges["segment_id"]) == {7}
    assert _edge(edges, dep, "x = 1")["source"]
    assert not _edge(edges, "x = 1", t1)["source"]
    assert not _edge(edges, "x = 1", t2)["package"]


def test_no_inputs_projects_instruction_and_targets_only(ctx, tmp_path):
    _require_imports()
    targets = [str(tmp_path / n) for n in ("a", "b", "c")]
    seg = Segment.from_recipe(1, "0", targets, context=ctx)

    assert len(seg.edges) == len(targets)
    assert len(seg.nodes) == 1 + len(targets)


def test_source_segment_edges_use_script_path(make_file, make_script, ctx):
    _require_imports()
    script = make_script("job.py", "pass\n")
    target = make_file("out.txt", mtime=NEW)
    seg = Segment.from_source(1, script, target, context=ctx)

    edges = seg.edges
    assert not edges["recipe"].any()
    assert list(edges["from"]) == [script]
    assert list(edges["to"]) == [target]
    # o script é o nó de instrução, não uma dependency
    assert list(seg.nodes.loc[seg.nodes["instruction"], "id"]) == [script]


def test_package_edges(make_file, ctx):
    _require_imports()
    target = make_file("out.txt", mtime=FUTURE)
    seg = Segment.from_recipe(1, "None", target, packages="pytest", context=ctx)

    edge = _edge(seg.edges, "pytest", "None")
    assert edge["package"] and edge["source"]
    assert not edge["recipe"]
    assert not edge["outdated"]


# ---------------------------------------------------------------------------
# Marcação `outdated`
# ---------------------------------------------------------------------------

def test_edges_up_to_date(make_file, ctx):
    _require_imports()
    dep = make_file("in.txt", mtime=OLD)
    target = make_file("out.txt", mtime=NEW)
    seg = Segment.from_recipe(1, "0", target, dep, context=ctx)

    assert not seg.edges["outdated"].any()


def test_edges_outdated_but_source_edges_never(make_file, ctx):
    _require_imports()
    dep = make_file("in.txt", mtime=NEW)
    target = make_file("out.txt", mtime=OLD)
    seg = Segment.from_recipe(1, "0", target, dep, context=ctx)

    edges = seg.edges
    assert _edge(edges, "0", target)["outdated"]
    assert not _edge(edges, dep, "0")["outdated"]


def test_missing_target_marks_produced_edges(make_file, tmp_path, ctx):
    _require_imports()
    dep = make_file("in.txt", mtime=NEW)
    target = str(tmp_path / "never.txt")
    seg = Segment.from_recipe(1, "0", target, dep, context=ctx)

    assert _edge(seg.edges, "0", target)["outdated"]


def test_missing_dependency_marks_all_without_raising(make_file, tmp_path, ctx):
    """
    Uma dependency ausente costuma ser o target ainda não criado de um
    Segment anterior: a projeção não falha e marca as arestas produzidas.
    """
    _require_imports()
    target = make_file("out.txt", mtime=NEW)
    missing = str(tmp_path / "upstream.txt")
    seg = Segment.from_recipe(1, "0", target, missing, context=ctx)

    edges = seg.edges
    assert _edge(edges, "0", target)["outdated"]
    assert not _edge(edges, missing, "0")["outdated"]


def test_script_newer_than_target_marks_outdated(make_file, make_script, ctx):
    _require_imports()
    target = make_file("out.txt", mtime=OLD)
    script = make_script("job.py", "pass\n", mtime=NEW)
    seg = Segment.from_source(1, script, target, context=ctx)

    assert seg.edges["outdated"].all()


def test_projection_is_deterministic(make_file, ctx):
    _require_imports()
    dep = make_file("in.txt", mtime=NEW)
    target = make_file("out.txt", mtime=OLD)
    seg = Segment.from_recipe(1, "0", target, dep, context=ctx)

    pd.testing.assert_frame_equal(seg.edges, seg.edges)
    pd.testing.assert_frame_equal(seg.nodes, seg.nodes)


# ---------------------------------------------------------------------------
# Helpers puros
# ---------------------------------------------------------------------------

def test_new_edge_is_cartesian_product():
    _require_imports()
    edges = new_edge(["a", "b"], ["x", "y", "z"], source=True, recipe=False, package=False, segment_id=3)

    assert len(edges) == 6
    assert not edges["outdated"].any()
    assert edges["segment_id"].dtype == "int64"


def test_new_node_empty_keeps_schema():
    _require_imports()
    nodes = new_node([], source=True, instruction=False, package=False)

    assert nodes.empty
    assert list(nodes.columns) == NODE_COLUMNS


def test_merge_nodes_target_of_other_segment_is_not_source():
    _require_imports()
    nodes = pd.concat(
        [
            new_node(["mid.txt"], source=False, instruction=False, package=False),
            new_node(["mid.txt"], source=True, instruction=False, package=False),
            new_node(["raw.txt"], source=True, instruction=False, package=False),
        ],
        ignore_index=True,
    )

    merged = merge_nodes(nodes).set_index("id")
    assert len(merged) == 2
    assert not merged.loc["mid.txt", "source"]
    assert merged.loc["raw.txt", "source"]


def test_propagate_outdated_is_transitive_and_pure():
    _require_imports()
    edges = pd.concat(
        [
            new_edge(["r1"], ["a.txt"], source=False, recipe=True, package=False, segment_id=1),
            new_edge(["a.txt"], ["r2"], source=True, recipe=True, package=False, segment_id=2),
            new_edge(["r2"], ["b.txt"], source=False, recipe=True, package=False, segment_id=2),
            new_edge(["b.txt"], ["r3"], source=True, recipe=True, package=False, segment_id=3),
            new_edge(["r3"], ["c.txt"], source=False, recipe=True, package=False, segment_id=3),
        ],
        ignore_index=True,
    )
    edges.loc[0, "outdated"] = True
    before = edges.copy()

    out = propagate_outdated(edges)

    pd.testing.assert_frame_equal(edges, before)
    produced = out[~out["source"]]
    assert produced["outdated"].all()
    assert not out.loc[out["source"], "outdated"].any()


def test_recipe_flag_only_on_dependency_edges(make_file, ctx):
    """Apenas dependency→recipe carrega `recipe`; package e instrução→target não."""
    _require_imports()
    dep = make_file("in.txt", mtime=OLD)
    target = make_file("out.txt", mtime=FUTURE)
    seg = Segment.from_recipe(1, "0", target, dep, "pytest", context=ctx)

    edges = seg.edges
    assert _edge(edges, dep, "0")["recipe"]
    assert not _edge(edges, "pytest", "0")["recipe"]
    assert not _edge(edges, "0", target)["recipe"]
