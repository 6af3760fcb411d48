"""
Client cache/notification agent.

Server-side model of the service worker served at ``/sw.js``. The browser
runs the JavaScript rendered from ``pwa/templates/pwa/sw.js``; this module
holds the same lifecycle and the same decisions (what to precache, cache vs
network per request, how a push blob becomes a notification, where a click
goes) so they can be exercised and reasoned about from Python. Both read
their constants from :class:`WorkerConfig`.

Lifecycle::

    parsed -> installing -> installed (waiting) -> activating -> activated
                       \\-> redundant (precache failed)
"""

import json
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Optional
from urllib.parse import urljoin, urlsplit

from django.conf import settings

from push.composer import DEFAULT_BADGE, DEFAULT_ICON

logger = logging.getLogger(__name__)

ROOT_DOCUMENT = "/"


class WorkerState(str, Enum):
    PARSED = "parsed"
    INSTALLING = "installing"
    INSTALLED = "installed"
    ACTIVATING = "activating"
    ACTIVATED = "activated"
    REDUNDANT = "redundant"


class NetworkError(Exception):
    """The network could not be reached (the equivalent of a rejected fetch())."""
    pass


class InstallError(Exception):
    """Precache failed; the worker is discarded."""
    pass


class WorkerStateError(Exception):
    """A lifecycle step was attempted from the wrong state."""
    pass


@dataclass(frozen=True)
class WorkerConfig:
    cache_name: str = "task-manager-pwa-cache-v1"
    precache_urls: tuple = (ROOT_DOCUMENT, "/manifest.json")
    api_prefix: str = "/api/"
    default_title: str = "Task Manager PWA"
    default_body: str = "New update available."
    default_icon: str = DEFAULT_ICON
    default_badge: str = DEFAULT_BADGE
    default_url: str = ROOT_DOCUMENT

    @classmethod
    def from_settings(cls) -> "WorkerConfig":
        return cls(
            cache_name=getattr(settings, "PWA_CACHE_NAME", cls.cache_name),
            precache_urls=tuple(getattr(settings, "PWA_PRECACHE_URLS", cls.precache_urls)),
            api_prefix=getattr(settings, "PWA_API_PREFIX", cls.api_prefix),
            default_icon=getattr(settings, "PWA_NOTIFICATION_ICON", DEFAULT_ICON),
            default_badge=getattr(settings, "PWA_NOTIFICATION_BADGE", DEFAULT_BADGE),
        )

    def to_js(self) -> dict:
        """Constantes que se inyectan en sw.js."""
        return {
            "cacheName": self.cache_name,
            "precacheUrls": list(self.precache_urls),
            "apiPrefix": self.api_prefix,
            "defaults": {
                "title": self.default_title,
                "body": self.default_body,
                "icon": self.default_icon,
                "badge": self.default_badge,
                "url": self.default_url,
            },
        }


# -------------------
# Fetch primitives
# -------------------
@dataclass(frozen=True)
class Request:
    url: str
    method: str = "GET"
    mode: str = "no-cors"

    @property
    def path(self) -> str:
        return urlsplit(self.url).path or ROOT_DOCUMENT

    @property
    def cache_key(self) -> str:
        parts = urlsplit(self.url)
        path = parts.path or ROOT_DOCUMENT
        return f"{path}?{parts.query}" if parts.query else path

    @property
    def is_navigation(self) -> bool:
        return self.mode == "navigate"


@dataclass(frozen=True)
class Response:
    url: str
    status: int = 200
    body: bytes = b""
    headers: dict = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def clone(self) -> "Response":
        return replace(self, headers=dict(self.headers))


def _as_request(request) -> Request:
    return request if isinstance(request, Request) else Request(str(request))


class Cache:
    def __init__(self):
        self._entries = {}

    def match(self, request) -> Optional[Response]:
        response = self._entries.get(_as_request(request).cache_key)
        return response.clone() if response is not None else None

    def put(self, request, response: Response):
        self._entries[_as_request(request).cache_key] = response.clone()

    def keys(self) -> list:
        return list(self._entries)


class CacheStorage:
    def __init__(self):
        self._caches = {}

    def open(self, name: str) -> Cache:
        if name not in self._caches:
            self._caches[name] = Cache()
        return self._caches[name]

    def has(self, name: str) -> bool:
        return name in self._caches

    def keys(self) -> list:
        return list(self._caches)

    def delete(self, name: str) -> bool:
        return self._caches.pop(name, None) is not None

    def match(self, request) -> Optional[Response]:
        for cache in self._caches.values():
            response = cache.match(request)
            if response is not None:
                return response
        return None


# -------------------
# Clients / notifications
# -------------------
@dataclass
class WindowClient:
    id: str
    url: str
    focused: bool = False
    controlled: bool = False

    @property
    def path(self) -> str:
        return urlsplit(self.url).path or ROOT_DOCUMENT

    def focus(self) -> "WindowClient":
        self.focused = True
        return self


class Clients:
    def __init__(self, clients=None):
        self._clients = list(clients or [])
        self._next_id = len(self._clients)

    def match_all(self, include_uncontrolled: bool = True) -> list:
        if include_uncontrolled:
            return list(self._clients)
        return [c for c in self._clients if c.controlled]

    def open_window(self, url: str) -> WindowClient:
        self._next_id += 1
        client = WindowClient(id=f"client-{self._next_id}", url=url, focused=True, controlled=True)
        self._clients.append(client)
        return client

    def claim(self):
        for client in self._clients:
            client.controlled = True


@dataclass
class Notification:
    title: str
    body: str
    icon: str
    badge: str
    tag: Optional[str] = None
    data: dict = field(default_factory=dict)
    closed: bool = False

    def close(self):
        self.closed = True


def _click_url(*candidates, default: str) -> str:
    # Solo cadenas no vacias; {"url": 5} cae al valor por defecto
    for value in candidates:
        if isinstance(value, str) and value:
            return value
    return default


def parse_push_payload(data, config: WorkerConfig = None) -> dict:
    """
    Convierte el blob opaco de un evento push en opciones de notificacion.

    JSON -> se usan sus campos; cualquier otra cosa -> el texto crudo es el
    body con titulo/icono por defecto. Campos ausentes -> valores por defecto.
    """
    config = config or WorkerConfig()
    parsed = {}

    if data is not None:
        text = data.decode("utf-8", errors="replace") if isinstance(data, (bytes, bytearray)) else str(data)
        try:
            decoded = json.loads(text)
        except ValueError:
            decoded = None
        if isinstance(decoded, dict):
            parsed = decoded
        elif text.strip():
            parsed = {"body": text}

    click_data = dict(parsed.get("data") or {}) if isinstance(parsed.get("data"), dict) else {}
    click_data["url"] = _click_url(click_data.get("url"), parsed.get("url"), default=config.default_url)

    return {
        "title": parsed.get("title") or config.default_title,
        "body": parsed.get("body") or config.default_body,
        "icon": parsed.get("icon") or config.default_icon,
        "badge": parsed.get("badge") or config.default_badge,
        "tag": parsed.get("tag") or None,
        "data": click_data,
    }


class ServiceWorkerAgent:
    """
    Una instancia de service worker.

    ``fetch`` recibe un :class:`Request` y devuelve un :class:`Response`, o
    lanza :class:`NetworkError` si no hay red.
    """

    def __init__(
        self,
        fetch: Callable[[Request], Response],
        config: WorkerConfig = None,
        caches: CacheStorage = None,
        clients: Clients = None,
        origin: str = "http://localhost",
    ):
        self.fetch = fetch
        self.config = config or WorkerConfig()
        self.caches = caches if caches is not None else CacheStorage()
        self.clients = clients if clients is not None else Clients()
        self.origin = origin.rstrip("/")
        self.state = WorkerState.PARSED
        self.notifications = []

    # -------------------
    # Lifecycle
    # -------------------
    def _require(self, *states):
        if self.state not in states:
            expected = ", ".join(s.value for s in states)
            raise WorkerStateError(f"worker is {self.state.value}, expected {expected}")

    def install(self):
        """Precache todo o nada: si falla una URL no queda cache alguna."""
        self._require(WorkerState.PARSED)
        self.state = WorkerState.INSTALLING

        fetched = []
        try:
            for url in self.config.precache_urls:
                request = Request(url)
                response = self.fetch(request)
                if not response.ok:
                    raise InstallError(f"Precache of {url} failed with status {response.status}")
                fetched.append((request, response))
        except (NetworkError, InstallError) as ex:
            self.state = WorkerState.REDUNDANT
            logger.warning("Service worker install aborted: %s", ex)
            if isinstance(ex, InstallError):
                raise
            raise InstallError(f"Precache failed: {ex}") from ex

        cache = self.caches.open(self.config.cache_name)
        for request, response in fetched:
            cache.put(request, response)

        self.state = WorkerState.INSTALLED

    def activate(self) -> list:
        """Borra las caches de otras versiones y toma control de los clientes."""
        self._require(WorkerState.INSTALLED)
        self.state = WorkerState.ACTIVATING

        cleared = []
        for name in self.caches.keys():
            if name != self.config.cache_name:
                logger.info("Service worker: clearing old cache %s", name)
                self.caches.delete(name)
                cleared.append(name)

        self.clients.claim()
        self.state = WorkerState.ACTIVATED
        return cleared

    # -------------------
    # Fetch
    # -------------------
    def is_api_request(self, request: Request) -> bool:
        return request.path.startswith(self.config.api_prefix)

    def handle_fetch(self, request: Request) -> Response:
        self._require(WorkerState.ACTIVATED)

        if request.is_navigation:
            return self._network_first(request)
        if request.method.upper() != "GET":
            return self.fetch(request)
        return self._cache_first(request)

    def _network_first(self, request: Request) -> Response:
        try:
            response = self.fetch(request)
        except NetworkError:
            cached = self.caches.match(Request(ROOT_DOCUMENT))
            if cached is None:
                raise
            return cached

        if response.ok:
            self.caches.open(self.config.cache_name).put(request, response.clone())
        return response

    def _cache_first(self, request: Request) -> Response:
        cached = self.caches.match(request)
        if cached is not None:
            return cached

        response = self.fetch(request)
        if response.ok and not self.is_api_request(request):
            self.caches.open(self.config.cache_name).put(request, response.clone())
        return response

    # -------------------
    # Push / click
    # -------------------
    def handle_push(self, data) -> Notification:
        options = parse_push_payload(data, self.config)
        notification = Notification(**options)
        self.notifications.append(notification)
        return notification

    def handle_notification_click(self, notification: Notification) -> WindowClient:
        notification.close()
        if notification in self.notifications:
            self.notifications.remove(notification)

        url = _click_url((notification.data or {}).get("url"), default=self.config.default_url)
        target = urljoin(self.origin + "/", url)
        target_path = urlsplit(target).path or ROOT_DOCUMENT

        for client in self.clients.match_all(include_uncontrolled=True):
            if client.path == target_path:
                return client.focus()
        return self.clients.open_window(target)
