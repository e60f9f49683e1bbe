# dep/modules/vcs.py
"""
vcs.py - operações git usadas pela sincronização.

Cada operação é síncrona e bloqueante; a concorrência fica a cargo do
SyncManager, que as executa em threads de trabalho.
"""

import os
import subprocess
from typing import List, Optional

from dep.modules import logger as _logger
from dep.modules.config import config as _default_config
from dep.modules.utils import Utils


class VcsError(Exception):
    pass


class GitClient:
    def __init__(self, config=None, log: Optional[_logger.Logger] = None, git: str = "git"):
        cfg = config or _default_config
        self.git = git
        self.shallow = cfg.getboolean("sync", "shallow", fallback=True)
        self.log = log or _logger.Logger("vcs")

    def _run(self, args: List[str], cwd: Optional[str] = None) -> str:
        cmd = [self.git] + args
        self.log.debug(f"Running: {' '.join(cmd)} (cwd={cwd})")
        try:
            res = subprocess.run(cmd, cwd=cwd,
                                 stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)
        except OSError as e:
            raise VcsError(f"Command failed: {' '.join(cmd)}: {e}") from e
        if res.returncode != 0:
            raise VcsError(f"Command failed: {' '.join(cmd)}\nstdout: {res.stdout.strip()}\nstderr: {res.stderr.strip()}")
        return res.stdout.strip()

    def _depth(self) -> List[str]:
        return ["--depth=1"] if self.shallow else []

    def clone(self, target_dir: str, url: str, branch: Optional[str] = None) -> str:
        parent = os.path.dirname(target_dir)
        if parent:
            Utils.ensure_dir(parent)
        args = ["clone"] + self._depth() + ["--recurse-submodules"]
        if branch:
            args += ["--branch", branch]
        return self._run(args + [url, target_dir])

    def fetch(self, target_dir: str, remote: str, ref: str) -> str:
        args = ["fetch"] + self._depth() + ["--recurse-submodules", remote, ref]
        return self._run(args, cwd=target_dir)

    def rev_parse(self, target_dir: str, ref: str) -> str:
        return self._run(["rev-parse", ref], cwd=target_dir)

    def reset(self, target_dir: str, revision: str) -> str:
        return self._run(["reset", "--hard", "--recurse-submodules", revision], cwd=target_dir)
