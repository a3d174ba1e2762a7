"""Access to the environment variables jot relies on."""

import os
from jot.errors import MissingEnvironmentVariable

EDITOR = 'EDITOR'
SHELL = 'SHELL'


def get_env_var(name: str) -> str:
    """Returns the value of the environment variable, re-read on every call.

    Raises :exc:`jot.errors.MissingEnvironmentVariable` if it is unset or empty.
    """
    value = os.environ.get(name)
    if not value:
        raise MissingEnvironmentVariable(name)
    return value
