"""
YAML loading for descriptors and profile specs.

Version numbers are written unquoted (``version: 1.20``). The standard
SafeLoader turns those into floats and ``1.20`` into ``1.2``, so numeric
scalars are kept as their source text here. Booleans and nulls still
resolve as usual.
"""

from __future__ import annotations

from typing import Any

import yaml

_NUMERIC_TAGS = frozenset({"tag:yaml.org,2002:int", "tag:yaml.org,2002:float"})


class TextScalarLoader(yaml.SafeLoader):
    """SafeLoader that resolves int/float-looking plain scalars as strings."""


TextScalarLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag not in _NUMERIC_TAGS]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def load_text_scalars(text: str) -> Any:
    """``yaml.safe_load`` with numeric scalars left as strings.

    Raises:
        yaml.YAMLError: If ``text`` is not valid YAML.
    """
    return yaml.load(text, Loader=TextScalarLoader)  # noqa: S506
