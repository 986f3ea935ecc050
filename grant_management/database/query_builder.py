import re
from typing import Any


def bind_named(query: str, params: dict[str, Any]) -> tuple[str, list[Any]]:
    """
    Convert named parameters (:param_name) to positional parameters ($1, $2, etc.)
    for asyncpg compatibility.
    """
    # "::jsonb" casts must not be read as parameters
    pattern = re.compile(r"(?<!:):(\w+)")
    matches = pattern.findall(query)
    values: list[Any] = []
    param_index = 1
    result_query = query

    # longest names first so :grant_id_list is bound before :grant_id
    unique_matches = sorted(set(matches), key=len, reverse=True)

    for match in unique_matches:
        if match not in params:
            raise ValueError(f"Missing parameter: {match}")
        result_query = re.sub(rf"(?<!:):{match}\b", f"${param_index}", result_query)
        values.append(params[match])
        param_index += 1

    return result_query, values
