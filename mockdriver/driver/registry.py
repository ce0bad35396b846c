"""Route and server-instance registries."""

from collections.abc import Iterator, Mapping
from typing import Any

from mockdriver.core.logging import get_logger
from mockdriver.exceptions import DuplicateDriverError
from mockdriver.models import RouteEntry


logger = get_logger(__name__)


class ServerRegistry:
    """Tracks which server instances already have a driver attached.

    A driver claims its server at construction and releases it on teardown.
    Claims are keyed by object identity; the registry holds a reference to
    each claimed server so identities cannot be recycled while claimed.
    """

    def __init__(self) -> None:
        self._claims: dict[int, tuple[Any, Any]] = {}

    def claim(self, server: Any, owner: Any) -> None:
        """Claim ``server`` for ``owner``.

        Raises:
            DuplicateDriverError: If the server is already claimed
        """
        key = id(server)
        if key in self._claims:
            raise DuplicateDriverError(
                f"server instance {type(server).__name__}@{key:#x} already has a driver"
            )
        self._claims[key] = (server, owner)
        logger.debug("server_claimed", server_id=key)

    def release(self, server: Any, owner: Any) -> bool:
        """Release ``server`` if ``owner`` holds the claim.

        Returns:
            True if a claim was released
        """
        key = id(server)
        claim = self._claims.get(key)
        if claim is None or claim[1] is not owner:
            return False
        del self._claims[key]
        logger.debug("server_released", server_id=key)
        return True

    def is_claimed(self, server: Any) -> bool:
        return id(server) in self._claims

    def __len__(self) -> int:
        return len(self._claims)


# Used by drivers constructed without an explicit registry.
default_server_registry = ServerRegistry()


class RouteRegistry:
    """Immutable set of route entries keyed by path prefix."""

    def __init__(self, routes: Mapping[str, str]) -> None:
        self._entries: dict[str, RouteEntry] = {
            key: RouteEntry(key=key, upstream_url=url) for key, url in routes.items()
        }

    def __iter__(self) -> Iterator[RouteEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def keys(self) -> list[str]:
        return list(self._entries)

    def get(self, key: str) -> RouteEntry | None:
        return self._entries.get(key)

    def resolve(self, key: str, original_url: str) -> str:
        """Resolve an inbound path and query against the route ``key``.

        Raises:
            KeyError: If no route is registered for ``key``
        """
        return self._entries[key].resolve(original_url)
