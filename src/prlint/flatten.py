from typing import Any, Dict, Mapping


def flatten(data: Any, delimiter: str = ".") -> Dict[str, Any]:
    """Flatten a nested JSON object into ``{"dotted.path": value}``.

    List items are addressed by their index, so ``labels[0]["name"]`` becomes
    ``labels.0.name``. Empty dicts and lists are kept as values at their own
    path. Anything that is not a mapping at the top level flattens to ``{}``.
    """
    result: Dict[str, Any] = {}
    if not isinstance(data, Mapping):
        return result

    def walk(value: Any, prefix: str) -> None:
        if isinstance(value, Mapping):
            children = value.items()
        elif isinstance(value, list):
            children = enumerate(value)
        else:
            result[prefix] = value
            return

        empty = True
        for key, child in children:
            empty = False
            walk(child, f"{prefix}{delimiter}{key}" if prefix else str(key))
        if empty and prefix:
            result[prefix] = value

    walk(data, "")
    return result
