# dep/modules/cli.py
"""
CLI do 'dep'.
- Usa rich para saída colorida, tabelas, árvore e spinner.
- Toda execução carrega o arquivo de specs e inicializa o gerenciador
  (o sync inicial segue [sync] mode, ou --sync-mode).

Usage examples:
  dep --specs ~/.config/dep/packages.yaml sync
  dep list
  dep --sync-mode never reload
  dep log
"""

from __future__ import annotations

import argparse
import json
import os
import shlex
import subprocess
import sys
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn

from dep.modules.config import DepConfig
from dep.modules.listing import render
from dep.modules.logger import Logger
from dep.modules.manager import SYNC_MODES, Dep
from dep.modules.spec import RegistrationError, load_spec_file

DEFAULT_SPECS = "~/.config/dep/packages.yaml"


def make_console(no_color: bool, quiet: bool) -> Console:
    if no_color:
        return Console(no_color=True, quiet=quiet)
    return Console(quiet=quiet)


class CLI:
    def __init__(self, console: Console, manager: Dep):
        self.console = console
        self.dep = manager

    def _open(self, path: Optional[str], title: str, print_only: bool = False):
        if not path:
            self.console.print(f"[yellow]no {title} available[/yellow]")
            return 1
        editor = os.environ.get("EDITOR")
        if editor and not print_only:
            return subprocess.call(shlex.split(editor) + [path])
        self.console.print(Panel(path, title=title, style="cyan"))
        return 0

    # -----------------------
    # comandos
    # -----------------------
    def cmd_sync(self, args: argparse.Namespace):
        with Progress(SpinnerColumn(), TextColumn("[progress.description]{task.description}"),
                      console=self.console, transient=True) as p:
            p.add_task("Synchronizing packages...", total=None)
            report = self.dep.sync()
        if report is None:
            self.console.print("[red]sync did not run; see the log for details[/red]")
            return 2
        summary = {action: ids for action, ids in report.by_action().items() if action != "noop"}
        style = "yellow" if report.has_errors else "green"
        self.console.print(Panel(json.dumps(summary, indent=2) if summary else "nothing to do",
                                 title=f"sync ({report.total} packages)", style=style))
        return 1 if report.has_errors else 0

    def cmd_reload(self, args: argparse.Namespace):
        if not self.dep.reload():
            return 2
        self.console.print("[green]reloaded[/green]")
        return 0

    def cmd_clean(self, args: argparse.Namespace):
        report = self.dep.clean()
        if report is None:
            return 2
        deleted = ", ".join(report["deleted"]) or "-"
        failed = ", ".join(report["failed"]) or "-"
        self.console.print(Panel(f"deleted: {deleted}\nfailed: {failed}", title="clean"))
        return 1 if report["failed"] else 0

    def cmd_list(self, args: argparse.Namespace):
        snap = self.dep.list()
        if snap is None:
            return 2
        if args.json:
            self.console.print_json(json.dumps(snap))
        else:
            render(snap, self.console)
        return 0

    def cmd_log(self, args: argparse.Namespace):
        return self._open(self.dep.open_log(), "log", print_only=args.print)

    def cmd_config(self, args: argparse.Namespace):
        return self._open(self.dep.open_config(), "config", print_only=args.print)


# -----------------------
# argparse
# -----------------------
def build_argparser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="dep", description="dependency-aware package manager")
    ap.add_argument("--no-color", action="store_true", help="Disable color output")
    ap.add_argument("--quiet", action="store_true", help="Quiet mode; less output")
    ap.add_argument("--conf", help="Path to dep.conf")
    ap.add_argument("--specs", help=f"Spec file (.yaml or .py); default {DEFAULT_SPECS}")
    ap.add_argument("--sync-mode", choices=SYNC_MODES, help="Initial sync selection")
    sub = ap.add_subparsers(dest="command", required=True)

    sub.add_parser("sync", aliases=["sy"], help="Install missing and update unpinned packages")
    sub.add_parser("reload", aliases=["rl"], help="Clear errors and rerun configure/load")
    sub.add_parser("clean", aliases=["cl"], help="Delete unknown directories from the base dir")
    p_list = sub.add_parser("list", aliases=["ls"], help="Show packages and dependency graph")
    p_list.add_argument("--json", action="store_true")
    p_log = sub.add_parser("log", help="Open the log file")
    p_log.add_argument("--print", action="store_true", help="Only print the path")
    p_cfg = sub.add_parser("config", aliases=["cfg"], help="Open the spec file")
    p_cfg.add_argument("--print", action="store_true", help="Only print the path")
    return ap


COMMANDS = {
    "sync": "cmd_sync", "sy": "cmd_sync",
    "reload": "cmd_reload", "rl": "cmd_reload",
    "clean": "cmd_clean", "cl": "cmd_clean",
    "list": "cmd_list", "ls": "cmd_list",
    "log": "cmd_log",
    "config": "cmd_config", "cfg": "cmd_config",
}


def main(argv: Optional[List[str]] = None):
    argv = sys.argv[1:] if argv is None else argv
    args = build_argparser().parse_args(argv)
    console = make_console(args.no_color, args.quiet)

    cfg = DepConfig([args.conf]) if args.conf else DepConfig()
    log = Logger("dep", config=cfg, log_to_console=False if args.quiet else None)
    manager = Dep(config=cfg, log=log)

    specs_path = args.specs or cfg.get("paths", "specs", fallback=DEFAULT_SPECS)
    try:
        collection = load_spec_file(specs_path)
    except RegistrationError as e:
        console.print(f"[red]{e}[/red]")
        return 2

    if not manager.initialize(collection, sync=args.sync_mode):
        console.print(Panel(manager.init_error or "initialization failed", title="dep", style="red"))
        return 2

    cli = CLI(console, manager)
    return getattr(cli, COMMANDS[args.command])(args)


if __name__ == "__main__":
    raise SystemExit(main())
