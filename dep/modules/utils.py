# dep/modules/utils.py

import os
import shutil


class Utils:
    """
    Funções utilitárias de sistema de arquivos usadas por outros módulos.
    """

    @staticmethod
    def ensure_dir(path):
        """
        Cria diretório se não existir.
        """
        os.makedirs(path, exist_ok=True)
        return path

    @staticmethod
    def resolve_base_dir(path):
        """
        Expande ~ e variáveis e retorna caminho absoluto do diretório base.
        """
        return os.path.abspath(os.path.expandvars(os.path.expanduser(path)))

    @staticmethod
    def list_entries(path):
        """
        Retorna {nome: caminho} de todas as entradas de um diretório.
        """
        if not os.path.isdir(path):
            return {}
        return {name: os.path.join(path, name) for name in sorted(os.listdir(path))}

    @staticmethod
    def remove_tree(path):
        """
        Remove diretório recursivamente (ou arquivo simples).
        """
        if os.path.isdir(path) and not os.path.islink(path):
            shutil.rmtree(path)
        else:
            os.remove(path)
