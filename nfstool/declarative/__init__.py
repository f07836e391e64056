"""
Sistema declarativo: archivo YAML → ServerConfig / ClientConfig
"""

from .loader import DeclarationLoader, load_declaration

__all__ = ["DeclarationLoader", "load_declaration"]
