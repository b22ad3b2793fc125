"""Loading of entity schema documents (JSON or YAML)."""
import json
import logging
from pathlib import Path
from typing import Any, Union

import yaml
from pydantic import ValidationError

from tenantflow.core.errors import ConfigurationError
from tenantflow.schemas.entities import SchemaDocument

log = logging.getLogger(__name__)


def parse_schema_document(raw: Union[dict, list]) -> SchemaDocument:
    """
    Validate a raw schema document.

    Accepts either {"entities": [...], "tenant": {...}} or a bare list of entities.

    Raises:
        ConfigurationError: If the document does not match the expected shape
    """
    if isinstance(raw, list):
        raw = {"entities": raw}
    try:
        return SchemaDocument.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid schema document: {e}", config_key="schema") from e


def load_schema_document(path: Path) -> SchemaDocument:
    """Read and validate a schema document; ``.yaml``/``.yml`` files are parsed as YAML."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() in (".yaml", ".yml"):
                raw: Any = yaml.safe_load(f)
            else:
                raw = json.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Schema file not found: {path}", config_key="schema_path") from e
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Schema file {path} is not valid: {e}", config_key="schema_path") from e

    document = parse_schema_document(raw)
    log.info("Loaded %d entities from %s", len(document.entities), path, extra={"stage": "load"})
    return document
