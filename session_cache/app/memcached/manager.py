"""
Cache manager handing out memcached-backed caches per region.
"""

from __future__ import annotations

import configparser
import threading
from typing import List, Optional

from cache_shared.config import CacheSettings, get_settings
from cache_shared.errors import CacheConfigurationError, CacheException, CacheInitializationError
from cache_shared.logging import get_logger
from ..spi import CacheManager, Destroyable, Initializable
from .addresses import has_text
from .builder import CONFIG_PROP_SERVERS, CONFIG_SECTION_MAIN, MemcachedClientBuilder
from .cache import MemcachedCache
from .registry import ClientRegistry
from .resources import get_section_property, load_ini


class MemcachedCacheManager(CacheManager, Initializable, Destroyable):
    """
    Creates one memcached client per cache region and wraps it in a
    MemcachedCache on every request.

    The registry and client builder can be injected. When they are not, the
    manager builds them from the INI file at ``config_file`` on first use and
    takes responsibility for tearing them down in ``destroy``. Injected
    infrastructure is left to whoever injected it.
    """

    def __init__(
        self,
        config_file: Optional[str] = None,
        *,
        registry: Optional[ClientRegistry] = None,
        builder: Optional[MemcachedClientBuilder] = None,
        settings: Optional[CacheSettings] = None,
    ):
        self.settings = settings or get_settings()
        self.logger = get_logger("session_cache.memcached.manager")

        self._config_file = config_file or self.settings.config_file
        self._registry = registry
        self._builder = builder
        self._builder_injected = builder is not None
        self._ini: Optional[configparser.ConfigParser] = None
        self._lock = threading.Lock()

        # Set when this instance built the registry itself and owns its shutdown.
        self._implicitly_created = False

    @property
    def config_file(self) -> str:
        """
        Resource path of the INI file used to build the registry.

        Ignored when a registry was injected; it is only read to lazily build
        one.
        """
        return self._config_file

    @config_file.setter
    def config_file(self, resource_path: str) -> None:
        self._config_file = resource_path

    @property
    def implicitly_created(self) -> bool:
        return self._implicitly_created

    @property
    def builder(self) -> Optional[MemcachedClientBuilder]:
        return self._builder

    def region_names(self) -> List[str]:
        if self._registry is None:
            return []
        return self._registry.names()

    def get_cache(self, name: str) -> MemcachedCache:
        """Load the cache for name, creating its memcached client if needed."""
        if not has_text(name):
            raise ValueError("Cache name must be a non-empty string.")

        self.logger.debug("Acquiring memcached cache", region=name)

        registry = self._ensure_registry()
        client = registry.get_or_create(name, self._build_client)
        return MemcachedCache(client, name)

    def init(self) -> None:
        """
        Initialize this instance.

        Does nothing when a registry was injected or was already built.
        Otherwise reads ``config_file`` and prepares the client builder, so
        configuration problems surface at startup rather than on the first
        cache request.
        """
        self._ensure_registry()

    def destroy(self) -> None:
        """
        Shut down the registry, only if it was implicitly created.

        Every region client is closed and the registry and INI configuration
        are discarded, along with the builder unless it was injected.
        Failures are logged and ignored so shutdown can proceed.
        """
        if not self._implicitly_created:
            return

        with self._lock:
            try:
                if self._registry is not None:
                    self._registry.close()
            except Exception as e:
                self.logger.warning(
                    "Unable to cleanly shutdown implicitly created registry. Ignoring (shutting down)...",
                    error=str(e)
                )
            finally:
                self._registry = None
                self._ini = None
                if not self._builder_injected:
                    self._builder = None
                self._implicitly_created = False

    def _build_client(self, name: str):
        if self._builder is None:
            raise CacheInitializationError(
                "No memcached client builder configured",
                details={"region": name}
            )
        return self._builder.build(name)

    def _ensure_registry(self) -> ClientRegistry:
        registry = self._registry
        if registry is not None:
            return registry

        with self._lock:
            if self._registry is None:
                self.logger.debug("Registry not set, constructing from configuration", config_file=self._config_file)
                try:
                    builder = self._builder if self._builder is not None else self._builder_from_config()
                except CacheException:
                    raise
                except Exception as e:
                    raise CacheInitializationError(
                        "Unable to initialize memcached cache manager",
                        details={"config_file": self._config_file, "error": str(e)}
                    ) from e

                self._builder = builder
                self._registry = ClientRegistry()
                self._implicitly_created = True
                self.logger.debug("Implicit registry created successfully", servers=builder.addresses())
            return self._registry

    def _builder_from_config(self) -> MemcachedClientBuilder:
        ini = self._ini if self._ini is not None else load_ini(self._config_file)

        servers = get_section_property(ini, CONFIG_SECTION_MAIN, CONFIG_PROP_SERVERS)
        if not has_text(servers):
            error = "No servers in memcached configuration file."
            self.logger.error(error, config_file=self._config_file)
            raise CacheConfigurationError(error, details={"config_file": self._config_file})

        builder = MemcachedClientBuilder.from_ini(ini, self.settings)
        self._ini = ini
        return builder
