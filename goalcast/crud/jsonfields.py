import json
from typing import Iterable, Optional


def dumps_list(items: Optional[Iterable[str]]) -> str:
    return json.dumps([str(x) for x in (items or [])], ensure_ascii=False)


def loads_list(value: Optional[str]) -> list[str]:
    if not value:
        return []
    try:
        parsed = json.loads(value)
    except ValueError:
        return []
    if isinstance(parsed, list):
        return [str(x) for x in parsed]
    return []
