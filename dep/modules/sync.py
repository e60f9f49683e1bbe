# dep/modules/sync.py
"""
sync.py - instalação/atualização dos pacotes a partir de repositórios Git.

- Pacote ausente do disco: clone (url, branch) -> exists=True.
- Pacote presente e não fixado (pin): rev-parse HEAD, fetch, rev-parse
  FETCH_HEAD; se mudou, reset --hard para a nova revisão.
- Cada pacote roda numa thread de trabalho; o estado do grafo só é alterado
  na thread que chamou sync_list, à medida que os resultados chegam.
- Quando todos completam (inclusive com erro): limpeza, reload completo e,
  se houve falhas, um único aviso agregado.
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Any, Dict, Iterable, List, Optional

from dep.modules import logger as _logger
from dep.modules.config import config as _default_config
from dep.modules.vcs import GitClient


class SyncError(Exception):
    def __init__(self, package_id: str, action: str, reason):
        self.package_id = package_id
        self.action = action
        self.reason = reason
        super().__init__(f"failed to {action} {package_id}; reason: {reason}")


class SyncResult:
    """Resultado de um sync: noop, install, update, skip (ou erro)."""

    def __init__(self, package_id: str, action: str, error: Optional[SyncError] = None,
                 before: Optional[str] = None, after: Optional[str] = None):
        self.package_id = package_id
        self.action = action
        self.error = error
        self.before = before
        self.after = after

    @property
    def ok(self) -> bool:
        return self.error is None

    def __repr__(self):
        state = "ok" if self.ok else "error"
        return f"SyncResult({self.package_id!r}, {self.action!r}, {state})"


class SyncReport:
    def __init__(self, total: int):
        self.total = total
        self.results: List[SyncResult] = []

    @property
    def has_errors(self) -> bool:
        return any(not r.ok for r in self.results)

    def by_action(self) -> Dict[str, List[str]]:
        out: Dict[str, List[str]] = {}
        for r in self.results:
            out.setdefault(r.action if r.ok else "error", []).append(r.package_id)
        return out


class SyncManager:
    def __init__(self, graph, lifecycle, cleaner, vcs=None, config=None,
                 log: Optional[_logger.Logger] = None, workers: Optional[int] = None):
        cfg = config or _default_config
        self.graph = graph
        self.lifecycle = lifecycle
        self.cleaner = cleaner
        self.log = log or _logger.Logger("sync")
        self.vcs = vcs or GitClient(config=cfg, log=self.log)
        self.remote = cfg.get("sync", "remote", fallback="origin")
        self.default_ref = cfg.get("sync", "default_ref", fallback="HEAD")
        self.workers = workers or cfg.getint("sync", "workers", fallback=4) or 1
        self._running = threading.Lock()

    # -------------------------
    # Por pacote
    # -------------------------
    def _job(self, package) -> Dict[str, Any]:
        return {
            "id": package.id,
            "dir": package.dir,
            "url": package.url,
            "branch": package.branch,
        }

    def sync(self, package, executor) -> Future:
        """
        Agenda o sync de um pacote e devolve um Future que completa uma única
        vez com um SyncResult. Pacotes desabilitados, ou fixados e já
        presentes, completam imediatamente sem tocar no disco.
        """
        if not package.enabled or (package.pin and package.exists):
            fut: Future = Future()
            fut.set_result(SyncResult(package.id, "noop"))
            return fut

        job = self._job(package)
        if not package.exists:
            return executor.submit(self._install, job)
        return executor.submit(self._update, job)

    def _install(self, job) -> SyncResult:
        try:
            self.vcs.clone(job["dir"], job["url"], job["branch"])
        except Exception as e:
            return SyncResult(job["id"], "install", error=SyncError(job["id"], "install", e))
        return SyncResult(job["id"], "install")

    def _update(self, job) -> SyncResult:
        target = job["dir"]
        try:
            before = self.vcs.rev_parse(target, "HEAD")
            self.vcs.fetch(target, self.remote, job["branch"] or self.default_ref)
            after = self.vcs.rev_parse(target, "FETCH_HEAD")
            if before == after:
                return SyncResult(job["id"], "skip", before=before, after=after)
            self.vcs.reset(target, after)
        except Exception as e:
            return SyncResult(job["id"], "update", error=SyncError(job["id"], "update", e))
        return SyncResult(job["id"], "update", before=before, after=after)

    def apply(self, package, result: SyncResult):
        """Aplica o resultado ao nó (sempre na thread do orquestrador)."""
        if not result.ok:
            self.log.event("error", str(result.error))
        elif result.action == "install":
            package.exists, package.added, package.configured = True, False, False
            self.log.event("install", f"installed {package.id}")
        elif result.action == "update":
            package.added, package.configured = False, False
            self.log.event("update", f"updated {package.id}; {result.before} -> {result.after}")
        elif result.action == "skip":
            self.log.event("skip", f"skipped {package.id}")

    # -------------------------
    # Lista (fan-out / fan-in)
    # -------------------------
    def sync_list(self, packages: Iterable) -> Optional[SyncReport]:
        if not self._running.acquire(blocking=False):
            self.log.event("warning", "a sync is already in progress; request ignored")
            return None

        try:
            packages = list(packages)
            report = SyncReport(len(packages))
            progress = 0

            def done(result: SyncResult):
                nonlocal progress
                progress += 1
                report.results.append(result)
                if progress == report.total:
                    self._finish(report)

            with self.graph.hold():
                if not packages:
                    self._finish(report)
                    return report

                with ThreadPoolExecutor(max_workers=self.workers) as ex:
                    futures = {}
                    for package in packages:
                        futures[self.sync(package, ex)] = package

                    for fut in as_completed(futures):
                        package = futures[fut]
                        try:
                            result = fut.result()
                        except Exception as e:
                            result = SyncResult(package.id, "sync", error=SyncError(package.id, "sync", e))
                        self.apply(package, result)
                        done(result)
            return report
        finally:
            self._running.release()

    def _finish(self, report: SyncReport):
        self.cleaner.clean(self.graph)
        self.lifecycle.reload_all()

        if report.has_errors:
            self.log.event("warning",
                           f"there were errors during sync; see {self.log.path} for more information")
