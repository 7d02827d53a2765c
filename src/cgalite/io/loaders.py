"""Loading rule programs and footprints from YAML/JSON files."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from ..errors import GeometryError, InputError
from ..model import GeometryContext, RuleExecutionResult
from ..rules import RuleProgram
from ..schema import validate_program

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = (".yaml", ".yml", ".json")


def read_document(path: Union[str, Path]) -> Dict[str, Any]:
    """Read a YAML or JSON file whose root is a mapping.

    JSON is read through the YAML parser, which accepts it as a subset.

    Raises:
        InputError: missing file, parse error, empty file or non-mapping root
    """
    doc_path = Path(path)
    if not doc_path.exists():
        raise InputError(f"File not found: {doc_path}")
    if doc_path.suffix.lower() not in SUPPORTED_SUFFIXES:
        logger.warning("Unexpected suffix '%s' for %s, reading as YAML", doc_path.suffix, doc_path)

    try:
        with doc_path.open("r", encoding="utf-8") as fp:
            data = yaml.safe_load(fp)
    except yaml.YAMLError as e:
        raise InputError(f"YAML parse error in {doc_path}: {e}") from e

    if data is None:
        raise InputError(f"Empty file: {doc_path}")
    if not isinstance(data, dict):
        raise InputError(f"Expected mapping at root of {doc_path}, got {type(data).__name__}")
    return data


def load_program(path: Union[str, Path]) -> RuleProgram:
    """Read and validate a rule program file.

    Raises:
        InputError: if the file cannot be read
        SchemaError: if the contents are not a valid rule program
    """
    program = validate_program(read_document(path))
    logger.debug("Loaded program '%s' from %s", program.name, path)
    return program


def load_context(path: Union[str, Path]) -> GeometryContext:
    """Read a footprint file ``{polygon, attributes?, boundingBox?}``."""
    data = read_document(path)
    try:
        return GeometryContext.from_dict(data)
    except GeometryError as e:
        raise InputError(f"Invalid footprint in {path}: {e.message}") from e


def result_to_json(result: RuleExecutionResult, indent: int = 2) -> str:
    return json.dumps(result.to_dict(), indent=indent)
