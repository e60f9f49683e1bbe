# dep/modules/host.py
"""
host.py - superfície de ativação no processo em execução.

- activate(): torna o conteúdo de um pacote instalado importável
  (diretório do pacote no sys.path)
- refresh_meta(): invalida caches de import e roda os comandos de
  manutenção configurados em [host] maintenance
"""

import importlib
import os
import subprocess
import sys
from typing import List, Optional

from dep.modules import logger as _logger
from dep.modules.config import config as _default_config


class ActivationError(Exception):
    pass


class HostError(Exception):
    pass


class Host:
    def __init__(self, config=None, log: Optional[_logger.Logger] = None,
                 search_path: Optional[List[str]] = None):
        cfg = config or _default_config
        self.log = log or _logger.Logger("host")
        self.maintenance = cfg.getlist("host", "maintenance")
        self.search_path = sys.path if search_path is None else search_path

    def activate(self, package):
        if not package.dir or not os.path.isdir(package.dir):
            raise ActivationError(f"package directory not found: {package.dir}")
        if package.dir not in self.search_path:
            self.search_path.append(package.dir)
        importlib.invalidate_caches()

    def refresh_meta(self):
        importlib.invalidate_caches()
        for command in self.maintenance:
            self.log.debug(f"Running maintenance: {command}")
            res = subprocess.run(command, shell=True,
                                 stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)
            if res.returncode != 0:
                raise HostError(f"maintenance command failed: {command}\nstderr: {res.stderr.strip()}")
