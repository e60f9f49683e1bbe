from dep.modules.manager import Dep

__version__ = "0.1.0"
__all__ = ["Dep"]
