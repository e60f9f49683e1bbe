# dep/modules/spec.py
"""
spec.py - modelo canônico das especificações de pacotes.

Uma spec chega em um de dois formatos e é normalizada aqui, na fronteira
do registro:
 - identificador simples: "owner/name"
 - registro completo (dict ou PackageSpec) com alias, url, branch, pin,
   disable, requires, deps e hooks setup/config/load

Coleções (SpecCollection) agrupam specs e podem aninhar outras coleções em
"modules", herdando pin/disable da coleção que as contém.
"""

from __future__ import annotations

import importlib
import os
import re
import runpy
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import yaml

ID_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+/([A-Za-z0-9_.-]+)$")

HOOK_STAGES = ("setup", "config", "load")

SPEC_KEYS = {
    "id", "as", "alias", "url", "branch", "pin", "disable", "enabled",
    "requires", "deps", "setup", "config", "load",
}

COLLECTION_KEYS = {"packages", "specs", "name", "pin", "disable", "modules", "base_dir", "sync"}

Hook = Union[Callable[[], Any], str]


class RegistrationError(Exception):
    pass


def package_name(package_id: str) -> str:
    """Extrai o nome a partir de "owner/name"; falha com mensagem descritiva."""
    match = ID_PATTERN.match(package_id) if isinstance(package_id, str) else None
    if not match:
        raise RegistrationError(
            f'invalid name "{package_id}"; must be in the format "user/package"')
    return match.group(1)


class PackageSpec:
    def __init__(self,
                 id: str,
                 alias: Optional[str] = None,
                 url: Optional[str] = None,
                 branch: Optional[str] = None,
                 pin: bool = False,
                 disable: bool = False,
                 requires: Optional[List[Any]] = None,
                 deps: Optional[List[Any]] = None,
                 setup: Optional[Hook] = None,
                 config: Optional[Hook] = None,
                 load: Optional[Hook] = None):
        self.id = id
        self.alias = alias
        self.url = url
        self.branch = branch
        self.pin = pin
        self.disable = disable
        self.requires = requires or []
        self.deps = deps or []
        self.setup = setup
        self.config = config
        self.load = load

    def hooks(self) -> Dict[str, Optional[Hook]]:
        return {"setup": self.setup, "config": self.config, "load": self.load}

    def __repr__(self):
        return f"PackageSpec({self.id!r})"


def _as_list(value) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _check_text(field: str, value):
    if value is None or isinstance(value, str):
        return value
    raise RegistrationError(f"malformed spec: '{field}' must be a string, got {type(value).__name__}")


def _check_hook(stage: str, hook):
    if hook is None or callable(hook) or isinstance(hook, str):
        return hook
    raise RegistrationError(f"{stage} hook must be callable or a shell command, got {type(hook).__name__}")


def parse_spec(raw) -> PackageSpec:
    """Normaliza uma spec crua (str, lista [id, load], dict ou PackageSpec)."""
    if isinstance(raw, PackageSpec):
        return raw

    if isinstance(raw, str):
        return PackageSpec(raw)

    if isinstance(raw, (list, tuple)):
        if not 1 <= len(raw) <= 2 or not isinstance(raw[0], str):
            raise RegistrationError(f"malformed spec: {raw!r}")
        load = raw[1] if len(raw) == 2 else None
        return PackageSpec(raw[0], load=_check_hook("load", load))

    if not isinstance(raw, dict):
        raise RegistrationError(f"malformed spec: expected identifier or mapping, got {type(raw).__name__}")

    unknown = set(raw) - SPEC_KEYS
    if unknown:
        raise RegistrationError(f"malformed spec: unknown keys {sorted(unknown)}")
    if not isinstance(raw.get("id"), str):
        raise RegistrationError("malformed spec: missing 'id'")

    disable = bool(raw.get("disable", False)) or raw.get("enabled", True) is False
    return PackageSpec(
        raw["id"],
        alias=_check_text("as", raw.get("as") or raw.get("alias")),
        url=_check_text("url", raw.get("url")),
        branch=_check_text("branch", raw.get("branch")),
        pin=bool(raw.get("pin", False)),
        disable=disable,
        requires=_as_list(raw.get("requires")),
        deps=_as_list(raw.get("deps")),
        setup=_check_hook("setup", raw.get("setup")),
        config=_check_hook("config", raw.get("config")),
        load=_check_hook("load", raw.get("load")),
    )


class SpecCollection:
    """Lista ordenada de specs mais overrides e coleções aninhadas."""

    def __init__(self,
                 entries: Optional[List[Any]] = None,
                 name: Optional[str] = None,
                 pin: bool = False,
                 disable: bool = False,
                 modules: Optional[List[Any]] = None,
                 settings: Optional[Dict[str, Any]] = None,
                 source: Optional[str] = None):
        self.entries = entries or []
        self.name = name
        self.pin = pin
        self.disable = disable
        self.modules = modules or []
        self.settings = settings or {}
        self.source = source

    def __repr__(self):
        return f"SpecCollection(name={self.name!r}, entries={len(self.entries)}, modules={len(self.modules)})"


def parse_collection(raw, name: Optional[str] = None) -> SpecCollection:
    if isinstance(raw, SpecCollection):
        return raw

    if isinstance(raw, (list, tuple)):
        return SpecCollection(list(raw), name=name)

    if isinstance(raw, dict):
        unknown = set(raw) - COLLECTION_KEYS
        if unknown:
            raise RegistrationError(f"malformed collection: unknown keys {sorted(unknown)}")
        entries = raw.get("packages", raw.get("specs")) or []
        if not isinstance(entries, (list, tuple)):
            raise RegistrationError("malformed collection: 'packages' must be a list")
        settings = {k: raw[k] for k in ("base_dir", "sync") if k in raw}
        return SpecCollection(
            list(entries),
            name=raw.get("name") or name,
            pin=bool(raw.get("pin", False)),
            disable=bool(raw.get("disable", False)),
            modules=_as_list(raw.get("modules")),
            settings=settings,
        )

    if hasattr(raw, "specs"):
        return parse_collection(getattr(raw, "specs"), name=name or getattr(raw, "__name__", None))

    raise RegistrationError(f"malformed collection: {type(raw).__name__}")


def resolve_module(entry) -> Tuple[str, SpecCollection]:
    """Resolve uma entrada de "modules": coleção inline ou nome de módulo Python."""
    name = "<unnamed module>"
    if isinstance(entry, str):
        name = entry
        try:
            entry = importlib.import_module(entry)
        except Exception as e:
            raise RegistrationError(f"cannot import module collection '{name}': {e}") from e
    collection = parse_collection(entry)
    return collection.name or name, collection


def load_spec_file(path: str) -> SpecCollection:
    """Carrega specs de um arquivo YAML (.yaml/.yml) ou Python (.py com `specs`)."""
    path = os.path.abspath(os.path.expanduser(path))
    if not os.path.isfile(path):
        raise RegistrationError(f"spec file not found: {path}")

    ext = os.path.splitext(path)[1].lower()
    if ext in (".yaml", ".yml"):
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or []
    elif ext == ".py":
        data = runpy.run_path(path).get("specs")
        if data is None:
            raise RegistrationError(f"{path} does not define 'specs'")
    else:
        raise RegistrationError(f"unsupported spec file type: {path}")

    collection = parse_collection(data)
    collection.source = path
    return collection
