"""I/O utilities for cgalite."""

from .loaders import load_context, load_program, read_document, result_to_json
from .stl import write_stl

__all__ = ['load_context', 'load_program', 'read_document', 'result_to_json', 'write_stl']
