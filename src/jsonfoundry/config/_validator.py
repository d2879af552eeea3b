import json
from pathlib import Path
from typing import Any

import jsonschema.validators
from jsonschema.exceptions import best_match

from jsonfoundry.config._error import ConfigError

CONFIG_SCHEMA_PATH = Path(__file__).absolute().parent / "schema.json"

with CONFIG_SCHEMA_PATH.open() as fd:
    CONFIG_SCHEMA = json.load(fd)

CONFIG_VALIDATOR = jsonschema.validators.Draft202012Validator(CONFIG_SCHEMA)


def validate_config(data: dict[str, Any]) -> None:
    """Raise `ConfigError` describing the most relevant problem in a raw configuration."""
    error = best_match(CONFIG_VALIDATOR.iter_errors(data))
    if error is not None:
        raise ConfigError.from_validation_error(error) from None
