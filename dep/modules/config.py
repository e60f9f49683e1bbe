# dep/modules/config.py
import configparser
import os

DEFAULT_LOCATIONS = [
    "/etc/dep/dep.conf",
    os.path.expanduser("~/.config/dep/dep.conf"),
    "/run/dep/dep.conf",
]

DEFAULT_BASE_DIR = os.path.expanduser("~/.local/share/dep/packages")
DEFAULT_URL_FORMAT = "https://github.com/{id}.git"


def default_locations():
    """DEP_CONF, se definido, tem prioridade sobre os locais padrão."""
    env = os.environ.get("DEP_CONF")
    if env:
        return [env] + DEFAULT_LOCATIONS
    return list(DEFAULT_LOCATIONS)


class DepConfig:
    def __init__(self, locations=None):
        self.locations = locations or default_locations()
        self.config = configparser.ConfigParser()
        self.loaded_from = None
        self.reload()

    def reload(self):
        """(Re)carrega a configuração do primeiro arquivo disponível.

        Sem arquivo, todos os getters devolvem o fallback.
        """
        self.config = configparser.ConfigParser()
        self.loaded_from = None
        for path in self.locations:
            if os.path.isfile(path):
                self.config.read(path)
                self.loaded_from = path
                return

    def get(self, section, option, fallback=None):
        try:
            return self.config.get(section, option, fallback=fallback)
        except (configparser.NoSectionError, configparser.NoOptionError):
            return fallback

    def getboolean(self, section, option, fallback=False):
        try:
            return self.config.getboolean(section, option, fallback=fallback)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return fallback

    def getint(self, section, option, fallback=0):
        try:
            return self.config.getint(section, option, fallback=fallback)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return fallback

    def getlist(self, section, option, fallback=None, delimiter=","):
        raw = self.get(section, option, fallback="")
        if raw:
            return [item.strip() for item in raw.split(delimiter) if item.strip()]
        return fallback or []

    # atalhos usados pelo core
    @property
    def base_dir(self):
        return os.path.expanduser(self.get("paths", "base_dir", fallback=DEFAULT_BASE_DIR))

    @property
    def sync_mode(self):
        return self.get("sync", "mode", fallback="new").lower()

    @property
    def url_format(self):
        return self.get("sync", "url_format", fallback=DEFAULT_URL_FORMAT)

    def __getitem__(self, section):
        if section in self.config:
            return dict(self.config[section])
        raise KeyError(f"Seção '{section}' não encontrada.")

    def __contains__(self, section):
        return section in self.config

# Instância global padrão para uso em outros módulos
config = DepConfig()
