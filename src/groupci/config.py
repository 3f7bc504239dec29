from __future__ import annotations

SUPPORTED_VERSIONS = ("1.0",)

# Searched in the current directory, in this order, when no file is given
DEFAULT_FILENAMES = ("groupci.yml", "groupci.yaml", "groupci.toml")

# Read by the CLI through click's envvar= support
FILE_ENV_VAR = "GROUPCI_FILE"
WORKERS_ENV_VAR = "GROUPCI_WORKERS"
