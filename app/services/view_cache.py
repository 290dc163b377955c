import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


def project_path(project_id: str) -> str:
    return f"/projects/{project_id}"


class ViewCache:
    """Rendered page payloads keyed by path.

    Writes call ``invalidate`` with the path of the page they make stale; the
    next read of that page rebuilds it from the store.
    """

    def __init__(self):
        self._entries: Dict[str, Any] = {}

    def get(self, path: str) -> Optional[Any]:
        return self._entries.get(path)

    def set(self, path: str, value: Any) -> None:
        self._entries[path] = value

    def invalidate(self, path: str) -> None:
        if self._entries.pop(path, None) is not None:
            logger.debug("Invalidated cached view %s", path)

    def clear(self) -> None:
        self._entries.clear()


view_cache = ViewCache()

def get_view_cache() -> ViewCache:
    return view_cache
