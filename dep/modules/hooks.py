# dep/modules/hooks.py
import os
import subprocess
from typing import Optional, Tuple

from dep.modules import logger as _logger


class HookError(Exception):
    def __init__(self, package_id: str, stage: str, reason):
        self.package_id = package_id
        self.stage = stage
        self.reason = reason
        super().__init__(f"{stage} hook failed for {package_id}: {reason}")


class HookManager:
    """
    Executa os hooks de um pacote (on_setup, on_config, on_load).
    - Hooks podem ser:
        • Funções Python (chamadas sem argumentos)
        • Comandos shell (executados no diretório do pacote)
    - A ordem de execução é a ordem de registro.
    """

    STAGES = ("on_setup", "on_config", "on_load")

    def __init__(self, log: Optional[_logger.Logger] = None):
        self.log = log or _logger.Logger("hooks")

    # ---------------------------------------------------
    # Execução
    # ---------------------------------------------------
    def run_hooks(self, package, stage: str) -> Tuple[bool, Optional[HookError]]:
        """
        Roda todos os hooks de `stage`. No primeiro erro marca o pacote com
        error=True e devolve (False, HookError); os hooks seguintes não rodam.
        """
        if stage not in self.STAGES:
            raise ValueError(f"unknown hook stage: {stage}")

        hooks = getattr(package, stage)
        for hook in hooks:
            try:
                self._execute_hook(hook, package)
            except Exception as e:
                package.error = True
                return False, HookError(package.id, stage, e)

        if hooks:
            noun = "hook" if len(hooks) == 1 else "hooks"
            self.log.event("hook", f"ran {len(hooks)} {stage} {noun} for {package.id}")

        return True, None

    # ---------------------------------------------------
    # Execução de tipos de hook
    # ---------------------------------------------------
    def _execute_hook(self, hook, package):
        """Executa hook que pode ser função ou string (comando)"""
        if callable(hook):
            return hook()

        if isinstance(hook, str):
            return self._execute_command(hook, package)

        raise TypeError(f"invalid hook: {hook!r}")

    def _execute_command(self, command: str, package):
        """Executa um comando shell dentro do diretório do pacote"""
        self.log.debug(f"Executando comando hook: {command} ({package.id})")

        env = os.environ.copy()
        env["DEP_PACKAGE"] = package.id
        env["DEP_PACKAGE_DIR"] = package.dir or ""

        cwd = package.dir if package.dir and os.path.isdir(package.dir) else None
        subprocess.run(command, shell=True, check=True, env=env, cwd=cwd)
