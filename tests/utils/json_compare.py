from typing import Dict, Iterable, Set

# Server-generated fields that differ on every run
VOLATILE_KEYS = {"clientId", "createdAt", "updatedAt"}


def exclude_keys(data: Dict, keys: Set[str] = VOLATILE_KEYS) -> Dict:
    return {k: v for k, v in data.items() if k not in keys}


def by_key(items: Iterable[Dict], key: str) -> Dict[str, Dict]:
    return {item[key]: item for item in items}
