import re
from typing import Any

# ``::type`` casts are left alone.
_NAMED_PARAM = re.compile(r"(?<!:):([A-Za-z_]\w*)")


def bind_named(query: str, params: dict[str, Any]) -> tuple[str, list[Any]]:
    """
    Convert named parameters (:param_name) to positional parameters ($1, $2, etc.)
    for asyncpg. A name used more than once is bound to a single position.
    """
    positions: dict[str, int] = {}
    values: list[Any] = []

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in params:
            raise ValueError(f"Missing parameter: {name}")
        if name not in positions:
            values.append(params[name])
            positions[name] = len(values)
        return f"${positions[name]}"

    return _NAMED_PARAM.sub(_replace, query), values
