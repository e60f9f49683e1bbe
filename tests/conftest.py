# tests/conftest.py
"""
Fixtures compartilhadas: config e logger isolados em tmp_path, host e VCS
falsos (nada de git real, nada de sys.path real) e um construtor de grafo.
"""

import os
import threading
import time

import pytest

from dep.modules.config import DepConfig
from dep.modules.graph import DependencyGraph
from dep.modules.hooks import HookManager
from dep.modules.host import ActivationError, HostError
from dep.modules.lifecycle import Lifecycle
from dep.modules.logger import Logger
from dep.modules.vcs import VcsError


class FakeHost:
    def __init__(self, fail=()):
        self.fail = set(fail)
        self.activated = []
        self.refreshed = 0
        self.refresh_error = None

    def activate(self, package):
        if package.id in self.fail:
            raise ActivationError(f"cannot activate {package.id}")
        self.activated.append(package.id)

    def refresh_meta(self):
        self.refreshed += 1
        if self.refresh_error:
            raise HostError(self.refresh_error)


class FakeVcs:
    """
    Repositórios em memória: `remote[dir]` é a revisão do upstream,
    `heads[dir]` a revisão local. `fail[(op, dir)]` força erro numa operação.
    """

    def __init__(self, make_dirs=False):
        self.remote = {}
        self.heads = {}
        self.fetched = {}
        self.fail = {}
        self.delays = {}
        self.calls = []
        self.make_dirs = make_dirs
        self._lock = threading.Lock()

    def _call(self, op, target, *args):
        with self._lock:
            self.calls.append((op, target) + args)
        delay = self.delays.get(target)
        if delay:
            time.sleep(delay)
        if (op, target) in self.fail:
            raise VcsError(self.fail[(op, target)])

    def ops(self, op):
        return [c for c in self.calls if c[0] == op]

    def clone(self, target_dir, url, branch=None):
        self._call("clone", target_dir, url, branch)
        self.heads[target_dir] = self.remote.get(target_dir, "rev-1")
        if self.make_dirs:
            os.makedirs(target_dir, exist_ok=True)

    def fetch(self, target_dir, remote, ref):
        self._call("fetch", target_dir, remote, ref)
        self.fetched[target_dir] = self.remote.get(target_dir, self.heads.get(target_dir))

    def rev_parse(self, target_dir, ref):
        self._call("rev_parse", target_dir, ref)
        if ref == "FETCH_HEAD":
            return self.fetched[target_dir]
        return self.heads[target_dir]

    def reset(self, target_dir, revision):
        self._call("reset", target_dir, revision)
        self.heads[target_dir] = revision


class Recorder:
    """Hooks que registram (estágio, id) numa lista compartilhada."""

    def __init__(self):
        self.events = []

    def hook(self, stage, package_id, fail=False):
        def run():
            self.events.append((stage, package_id))
            if fail:
                raise RuntimeError(f"{stage} exploded for {package_id}")
        return run

    def count(self, stage=None, package_id=None):
        return len([e for e in self.events
                    if (stage is None or e[0] == stage) and (package_id is None or e[1] == package_id)])

    def order(self, stage):
        return [pid for s, pid in self.events if s == stage]


@pytest.fixture
def conf(tmp_path):
    path = tmp_path / "dep.conf"
    path.write_text("[sync]\nworkers = 4\n\n[logging]\nlevel = debug\n", encoding="utf-8")
    return DepConfig([str(path)])


@pytest.fixture
def log(tmp_path, conf):
    return Logger("test", config=conf, log_file=str(tmp_path / "logs" / "dep.log"), log_to_console=False)


@pytest.fixture
def read_log(log):
    def _read():
        if not os.path.exists(log.path):
            return ""
        with open(log.path, "r", encoding="utf-8") as f:
            return f.read()
    return _read


@pytest.fixture
def base_dir(tmp_path):
    path = tmp_path / "packages"
    path.mkdir()
    return str(path)


@pytest.fixture
def host():
    return FakeHost()


@pytest.fixture
def vcs():
    return FakeVcs()


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def make_graph(base_dir):
    """Constrói um grafo; `missing` são nomes de pacotes ausentes do disco."""
    def _make(specs=None, missing=()):
        missing_dirs = {os.path.join(base_dir, name) for name in missing}
        graph = DependencyGraph(base_dir, exists=lambda path: path not in missing_dirs)
        if specs is not None:
            graph.build(specs)
        return graph
    return _make


@pytest.fixture
def make_lifecycle(host, log):
    def _make(graph):
        return Lifecycle(graph, hooks=HookManager(log=log), host=host, log=log)
    return _make
