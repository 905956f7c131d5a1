"""Variable interpolation for runbook templates."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping

_VAR_PATTERN = re.compile(r"\{([a-zA-Z_][a-zA-Z0-9_]*)\}")
_ENV_PATTERN = re.compile(r"\$\{(\w+):-([^}]*)\}")


def interpolate(template: str, variables: Mapping[str, str]) -> str:
    """Expand ``${VAR:-default}`` from the environment, then ``{name}`` from *variables*.

    Unknown ``{name}`` placeholders are left untouched.
    """
    expanded = _ENV_PATTERN.sub(
        lambda match: os.environ.get(match[1], match[2]), template
    )
    return _VAR_PATTERN.sub(
        lambda match: variables.get(match[1], match[0]), expanded
    )