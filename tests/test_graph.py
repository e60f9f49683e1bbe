# tests/test_graph.py
import os
import random
import sys

import pytest

from dep.modules.graph import DependencyGraph, SessionBusyError, sort_key
from dep.modules.package import Package
from dep.modules.resolver import CycleError, find_cycle
from dep.modules.spec import RegistrationError


def ids(packages):
    return [p.id for p in packages]


# =====================================================
# Registro / merge
# =====================================================

def test_register_bare_identifier_uses_defaults(make_graph, base_dir):
    graph = make_graph()
    package = graph.register("owner/pkg.nvim")

    assert package.name == "pkg.nvim"
    assert package.url == "https://github.com/owner/pkg.nvim.git"
    assert package.dir == os.path.join(base_dir, "pkg.nvim")
    assert package.enabled and not package.pin
    assert package.root
    assert package.exists


def test_register_rejects_malformed_identifier(make_graph):
    graph = make_graph()
    with pytest.raises(RegistrationError, match='invalid name "nope"'):
        graph.register("nope")
    with pytest.raises(RegistrationError):
        graph.register("a/b/c")


def test_register_rejects_unknown_spec_keys(make_graph):
    with pytest.raises(RegistrationError, match="unknown keys"):
        make_graph().register({"id": "x/a", "requirez": "x/b"})


def test_alias_changes_name_and_rechecks_disk(base_dir):
    checked = []

    def exists(path):
        checked.append(path)
        return path.endswith("other")

    graph = DependencyGraph(base_dir, exists=exists)
    package = graph.register("x/a")
    assert not package.exists

    graph.register({"id": "x/a", "as": "other"})
    assert package.name == "other"
    assert package.exists
    assert checked == [os.path.join(base_dir, "a"), os.path.join(base_dir, "other")]

    graph.register("x/a")
    assert len(checked) == 2


def test_reregistration_merges_into_one_node(make_graph):
    graph = make_graph()
    h1, h2 = (lambda: None), (lambda: None)

    graph.register({"id": "x/b", "requires": "x/a", "config": h1})
    b = graph.register({"id": "x/b", "requires": ["x/a"], "config": h2})
    a = graph.get("x/a")

    assert len(graph) == 2
    assert b.on_config == [h1, h2]
    assert ids(b.dependencies) == ["x/a"]
    assert ids(a.dependents) == ["x/b"]


def test_standalone_and_nested_registration_share_node(make_graph):
    graph = make_graph()
    setup, load = (lambda: None), (lambda: None)
    graph.register_recursive([
        ["x/a", load],
        {"id": "x/b", "requires": {"id": "x/a", "setup": setup}},
    ])

    a = graph.get("x/a")
    assert len(graph) == 2
    assert a.on_setup == [setup]
    assert a.on_load == [load]
    assert len(a.dependents) == 1


def test_field_merge_precedence(make_graph):
    graph = make_graph()
    graph.register({"id": "x/a", "url": "u1", "branch": "dev"})
    a = graph.register({"id": "x/a"})
    assert (a.url, a.branch) == ("u1", "dev")

    graph.register({"id": "x/a", "url": "u2"})
    assert a.url == "u2"
    assert a.branch == "dev"


def test_enabled_is_narrowed_and_pin_is_sticky(make_graph):
    graph = make_graph()
    graph.register({"id": "x/a", "disable": True, "pin": True})
    a = graph.register({"id": "x/a", "pin": False})
    assert not a.enabled
    assert a.pin

    b = graph.register({"id": "x/b", "enabled": False})
    assert not b.enabled


def test_downstream_deps_link_current_as_dependency(make_graph):
    graph = make_graph()
    a = graph.register({"id": "x/a", "deps": ["x/b", "x/c"]})

    assert ids(a.dependents) == ["x/b", "x/c"]
    assert ids(graph.get("x/b").dependencies) == ["x/a"]
    assert a.root
    assert not graph.get("x/b").root


def test_link_dependency_is_idempotent(make_graph):
    graph = make_graph()
    a, b = graph.register("x/a"), graph.register("x/b")
    graph.link_dependency(a, b)
    graph.link_dependency(a, b)

    assert len(a.dependents) == 1
    assert len(b.dependencies) == 1
    assert "x/b" in a.dependents
    assert not b.root


def test_overrides_flow_down_nested_collections(make_graph):
    graph = make_graph()
    graph.register_recursive({
        "packages": ["x/a"],
        "pin": True,
        "modules": [{
            "packages": ["x/b"],
            "disable": True,
            "modules": [{"packages": ["x/c"], "pin": False}],
        }],
    })

    a, b, c = graph.get("x/a"), graph.get("x/b"), graph.get("x/c")
    assert a.pin and a.enabled
    assert b.pin and not b.enabled
    assert c.pin and not c.enabled


def test_registration_error_carries_breadcrumbs(make_graph):
    graph = make_graph()
    with pytest.raises(RegistrationError) as info:
        graph.register_recursive({
            "packages": ["x/a"],
            "modules": [{"name": "inner", "packages": ["x/b", "bad"]}],
        })

    message = str(info.value)
    assert 'invalid name "bad"' in message
    assert "(spec='bad')" in message
    assert message.endswith("<- inner")


def test_nested_module_by_import_name(make_graph, tmp_path, monkeypatch):
    (tmp_path / "dep_test_specs.py").write_text(
        "specs = {'packages': ['x/mod'], 'pin': True}\n", encoding="utf-8")
    monkeypatch.syspath_prepend(str(tmp_path))
    monkeypatch.delitem(sys.modules, "dep_test_specs", raising=False)

    graph = make_graph()
    graph.register_recursive({"packages": [], "modules": ["dep_test_specs"]})
    assert graph.get("x/mod").pin

    with pytest.raises(RegistrationError, match="<- no_such_specs_module"):
        graph.register_recursive({"modules": ["no_such_specs_module"]})


def test_register_refused_while_busy(make_graph):
    graph = make_graph()
    with graph.hold():
        with pytest.raises(SessionBusyError):
            graph.register("x/a")
        with pytest.raises(SessionBusyError):
            graph.sort_dependencies()
    graph.register("x/a")


# =====================================================
# Ordenação
# =====================================================

def test_sort_by_dependency_count_then_id(make_graph):
    graph = make_graph([{"id": "x/b", "requires": "x/a"}, "x/c", {"id": "x/d", "requires": ["x/b", "x/a"]}])

    assert ids(graph.order) == ["x/a", "x/c", "x/b", "x/d"]
    assert ids(graph.get("x/a").dependents) == ["x/b", "x/d"]
    assert ids(graph.get("x/d").dependencies) == ["x/a", "x/b"]
    assert ids(graph.roots) == ["x/a", "x/c"]


def _random_specs(rng, count=12):
    names = [f"x/p{i:02d}" for i in range(count)]
    specs = []
    for i, name in enumerate(names):
        parents = rng.sample(names[:i], k=min(i, rng.randint(0, 3)))
        specs.append({"id": name, "requires": parents})
    return specs


@pytest.mark.parametrize("seed", range(5))
def test_order_is_deterministic_and_sorted(make_graph, seed):
    rng = random.Random(seed)
    specs = _random_specs(rng)
    shuffled = list(specs)
    rng.shuffle(shuffled)

    g1, g2 = make_graph(specs), make_graph(shuffled)

    assert ids(g1.order) == ids(g2.order)
    keys = [sort_key(p) for p in g1.order]
    assert keys == sorted(keys)
    for package in g1.order:
        other = g2.get(package.id)
        assert ids(package.dependencies) == ids(other.dependencies)
        assert ids(package.dependents) == ids(other.dependents)
        dep_keys = [sort_key(p) for p in package.dependents]
        assert dep_keys == sorted(dep_keys)


def test_chain_orders_dependencies_first(make_graph):
    graph = make_graph([{"id": "x/c", "requires": "x/b"}, {"id": "x/b", "requires": "x/a"}, "x/a"])
    assert ids(graph.order) == ["x/a", "x/b", "x/c"]


# =====================================================
# Ciclos
# =====================================================

def test_two_node_cycle_is_detected(make_graph):
    graph = make_graph()
    graph.register_recursive([{"id": "x/a", "requires": "x/b"}, {"id": "x/b", "requires": "x/a"}])
    graph.sort_dependencies()

    cycle = graph.find_cycle()
    assert cycle
    assert cycle[0] is cycle[-1]
    assert set(ids(cycle)) == {"x/a", "x/b"}

    with pytest.raises(CycleError, match="circular dependency detected in package graph: x/a -> x/b -> x/a"):
        graph.ensure_acyclic()


def test_self_dependency_is_a_cycle(make_graph):
    graph = make_graph()
    graph.register({"id": "x/a", "requires": "x/a"})
    assert ids(graph.find_cycle()) == ["x/a", "x/a"]


def test_three_node_cycle_reports_path(make_graph):
    graph = make_graph()
    graph.register_recursive([
        {"id": "x/a", "requires": "x/c"},
        {"id": "x/b", "requires": "x/a"},
        {"id": "x/c", "requires": "x/b"},
        {"id": "x/d", "requires": "x/a"},
    ])
    cycle = graph.find_cycle()
    assert len(cycle) == 4
    assert cycle[0] is cycle[-1]
    assert set(ids(cycle)) == {"x/a", "x/b", "x/c"}


def test_build_fails_on_cycle(make_graph):
    with pytest.raises(CycleError):
        make_graph([{"id": "x/a", "requires": "x/b"}, {"id": "x/b", "requires": "x/a"}])


def test_diamond_is_not_a_cycle(make_graph):
    graph = make_graph([
        {"id": "x/a", "requires": ["x/b", "x/c"]},
        {"id": "x/b", "requires": "x/d"},
        {"id": "x/c", "requires": "x/d"},
    ])
    assert graph.find_cycle() is None
    assert ids(graph.roots) == ["x/d"]


@pytest.mark.parametrize("seed", range(10))
def test_random_dags_have_no_cycle(make_graph, seed):
    graph = make_graph(_random_specs(random.Random(seed), count=20))
    assert graph.find_cycle() is None


def test_cycle_scan_handles_long_chains():
    chain = [Package(f"x/n{i:05d}") for i in range(5000)]
    graph = DependencyGraph("/tmp")
    for parent, child in zip(chain, chain[1:]):
        graph.link_dependency(parent, child)

    assert find_cycle(chain) is None

    graph.link_dependency(chain[-1], chain[0])
    cycle = find_cycle(chain)
    assert len(cycle) == len(chain) + 1
    assert cycle[0] is cycle[-1] is chain[0]
    assert {p.id for p in cycle} == {p.id for p in chain}
