"""DataMiner Agent lifecycle helpers"""
from .pruner import prune_elements
from .schemas import AdminConfig, ElementSelector

__version__ = "0.1.0"
__all__ = ["AdminConfig", "ElementSelector", "prune_elements"]
