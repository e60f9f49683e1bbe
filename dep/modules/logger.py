import os
import datetime
import threading
import json

from dep.modules.config import config as _default_config


class Logger:
    LEVELS = {
        "debug": 10,
        "info": 20,
        "success": 25,
        "warning": 30,
        "error": 40,
    }

    LOG_COLORS = {
        "DEBUG": "\033[90m",    # Cinza
        "INFO": "\033[94m",     # Azul
        "SUCCESS": "\033[92m",  # Verde
        "WARNING": "\033[93m",  # Amarelo
        "ERROR": "\033[91m",    # Vermelho
        "RESET": "\033[0m"
    }

    # categoria do evento -> nível
    CATEGORIES = {
        "hook": "debug",
        "host": "debug",
        "skip": "debug",
        "config": "info",
        "load": "info",
        "clean": "info",
        "install": "success",
        "update": "success",
        "warning": "warning",
        "error": "error",
    }

    def __init__(self, name="dep", config=None, log_file=None, log_to_console=None):
        cfg = config or _default_config
        self.name = name
        self.log_file = log_file or os.path.expanduser(
            cfg.get("logging", "log_file", fallback="~/.cache/dep/dep.log"))
        self.color_output = cfg.getboolean("logging", "color_output", fallback=True)
        self.log_to_file = cfg.getboolean("logging", "log_to_file", fallback=True)
        if log_to_console is None:
            log_to_console = cfg.getboolean("logging", "log_to_console", fallback=True)
        self.log_to_console = log_to_console
        self.use_utc = cfg.getboolean("logging", "timestamp_utc", fallback=False)
        self.log_format = cfg.get("logging", "log_format", fallback="text").lower()
        self.max_log_size_kb = cfg.getint("logging", "max_log_size_kb", fallback=0)

        level_str = cfg.get("logging", "level", fallback="info").lower()
        self.min_level = self.LEVELS.get(level_str, 20)

        self._ensure_dir(self.log_file)

        self._lock = threading.Lock()

    @property
    def path(self):
        return self.log_file

    def _ensure_dir(self, filepath):
        dirpath = os.path.dirname(filepath)
        if not dirpath:
            return
        try:
            os.makedirs(dirpath, exist_ok=True)
        except OSError as e:
            print(f"Logger: falha ao criar diretório de log {dirpath}: {e}")

    def _get_timestamp(self):
        if self.use_utc:
            now = datetime.datetime.now(datetime.timezone.utc)
        else:
            now = datetime.datetime.now()
        return now.strftime("%Y-%m-%d %H:%M:%S")

    def _rotate_if_needed(self, filepath):
        if self.max_log_size_kb <= 0:
            return
        if os.path.exists(filepath) and os.path.getsize(filepath) > self.max_log_size_kb * 1024:
            rotated = filepath + ".1"
            try:
                if os.path.exists(rotated):
                    os.remove(rotated)
                os.rename(filepath, rotated)
            except OSError as e:
                print(f"Logger: erro ao rotacionar log {filepath}: {e}")

    def _write_file(self, filepath, message):
        if not self.log_to_file:
            return
        self._rotate_if_needed(filepath)
        try:
            with open(filepath, "a", encoding="utf-8") as f:
                f.write(message + "\n")
        except OSError as e:
            print(f"Logger: falha ao escrever no arquivo de log {filepath}: {e}")

    def _format_text(self, level, message, category):
        timestamp = self._get_timestamp()
        if category:
            return f"[{timestamp}] [{self.name}] [{level}] [{category}] {message}"
        return f"[{timestamp}] [{self.name}] [{level}] {message}"

    def _format_json(self, level, message, category):
        return json.dumps({
            "timestamp": self._get_timestamp(),
            "logger": self.name,
            "level": level,
            "category": category,
            "message": message
        })

    def _format_message(self, level, message, category=None):
        if self.log_format == "json":
            return self._format_json(level, message, category)
        return self._format_text(level, message, category)

    def _log_to_console(self, formatted, level):
        if not self.log_to_console:
            return
        if self.color_output and self.log_format == "text":
            color = self.LOG_COLORS.get(level.upper(), "")
            reset = self.LOG_COLORS.get("RESET", "")
            print(f"{color}{formatted}{reset}")
        else:
            print(formatted)

    def _should_log(self, level):
        return self.LEVELS.get(level.lower(), 0) >= self.min_level

    def log(self, level, message, *, category=None):
        level = level.upper()
        if not self._should_log(level):
            return

        formatted = self._format_message(level, message, category)
        with self._lock:
            self._log_to_console(formatted, level)
            self._write_file(self.log_file, formatted)

    def event(self, category, message):
        """Registra um evento do core marcado com sua categoria (hook, install, ...)."""
        level = self.CATEGORIES.get(category, "info")
        self.log(level, message, category=category)

    def debug(self, message):
        self.log("DEBUG", message)

    def info(self, message):
        self.log("INFO", message)

    def success(self, message):
        self.log("SUCCESS", message)

    def warning(self, message):
        self.log("WARNING", message)

    def error(self, message):
        self.log("ERROR", message)
