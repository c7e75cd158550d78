"""Configuration loading and the published ACL snapshot.

The document is YAML. Defaults and environment presets are layered over it,
and the access control list in ``spec.accessControlList`` is compiled into a
fresh ``AccessControlList`` on every load. ``ConfigStore`` keeps exactly one
published ``ConfigSnapshot``; a reload either replaces it whole or leaves it
alone.
"""

from __future__ import annotations

import copy
import logging
import os
import threading
import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping, Protocol

import yaml

from pydantic import BaseModel, ValidationError

from netacl import __version__
from netacl.acl import AccessControlList, EvaluationStats
from netacl.errors import AclBuildError, ConfigError
from netacl.models import AccessControlListSpec, Document, Spec
from netacl.network import get_local_ip, split_addresses
from netacl.Policy.ConfigPolicyEnum import ConfigPolicyEnum as ConfigPolicy
from netacl.Policy.VerdictEnum import VerdictEnum as Verdict

logger = logging.getLogger(__name__)

_SYSTEM_ENV_VARS = (
    ConfigPolicy.CONFIG_FILE_ENV,
    ConfigPolicy.SALT_ENV,
    ConfigPolicy.DS_PROVIDER_ENV,
    ConfigPolicy.DS_PARAMETERS_ENV,
    ConfigPolicy.EXTERN_ADDR_ENV,
    ConfigPolicy.LOCALNETS_ENV,
    ConfigPolicy.REGISTRAR_INTF_ENV,
)


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------

class SecretProvider(Protocol):
    def get_salt(self) -> str: ...


class RemoteConfigFetcher(Protocol):
    def fetch(self, config: dict[str, Any]) -> dict[str, Any]: ...


class FileSecretProvider:
    """Salt from NETACL_SALT, else from a salt file, else generated and saved."""

    def __init__(self, environ: Mapping[str, str] | None = None, path: str | Path | None = None) -> None:
        self.environ = os.environ if environ is None else environ
        self.path = Path(
            path
            or self.environ.get(ConfigPolicy.SALT_FILE_ENV.value)
            or Path.cwd() / ConfigPolicy.DEFAULT_SALT_FILE.value
        )

    def get_salt(self) -> str:
        salt = self.environ.get(ConfigPolicy.SALT_ENV.value)
        if salt:
            return salt

        if self.path.is_file():
            salt = self.path.read_text().strip()
            if salt:
                return salt
            logger.warning("Salt file %s is empty, generating a new salt", self.path)

        salt = uuid.uuid4().hex
        try:
            self.path.write_text(salt)
        except OSError as e:
            raise ConfigError(f"Unable to persist salt to {self.path}: {e}") from e
        logger.info("Generated new salt at %s", self.path)
        return salt


# ---------------------------------------------------------------------------
# Document loading
# ---------------------------------------------------------------------------

def config_path(path: str | Path | None = None, environ: Mapping[str, str] | None = None) -> Path:
    environ = os.environ if environ is None else environ
    return Path(
        path
        or environ.get(ConfigPolicy.CONFIG_FILE_ENV.value)
        or ConfigPolicy.DEFAULT_CONFIG_FILE.value
    )


def read_document(path: str | Path | None = None, environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    resolved = config_path(path, environ)
    try:
        with resolved.open() as f:
            document = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Unable to open configuration file {resolved}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {resolved}: {e}") from e

    if document is None:
        return {}
    if not isinstance(document, dict):
        raise ConfigError(f"{resolved} must contain a mapping at the top level")
    logger.debug("Read configuration from %s", resolved)
    return document


def _validate(model: type[BaseModel], data: Any) -> Any:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def _env_presets(spec: dict[str, Any], environ: Mapping[str, str]) -> None:
    if ConfigPolicy.EXTERN_ADDR_ENV.value in environ:
        spec["externAddr"] = environ[ConfigPolicy.EXTERN_ADDR_ENV.value]
    if ConfigPolicy.LOCALNETS_ENV.value in environ:
        spec["localnets"] = split_addresses(environ[ConfigPolicy.LOCALNETS_ENV.value])
    if ConfigPolicy.DS_PROVIDER_ENV.value in environ:
        spec["dataSource"] = {"provider": environ[ConfigPolicy.DS_PROVIDER_ENV.value]}
    if ConfigPolicy.REGISTRAR_INTF_ENV.value in environ:
        spec["registrarIntf"] = environ[ConfigPolicy.REGISTRAR_INTF_ENV.value]


def _apply_defaults(document: Mapping[str, Any]) -> dict[str, Any]:
    resolved: Document = _validate(Document, document)

    spec = resolved.spec
    if spec.bindAddr is None or spec.grpcService.bindAddr is None:
        local_ip = get_local_ip()
        spec.bindAddr = spec.bindAddr or local_ip
        spec.grpcService.bindAddr = spec.grpcService.bindAddr or local_ip

    return resolved.model_dump(exclude_none=True)


def _system_info(environ: Mapping[str, str], up_since: float) -> dict[str, Any]:
    api_version = ConfigPolicy.API_VERSION.value
    return {
        "version": __version__,
        "apiVersion": api_version,
        "apiPath": f"/api/{api_version}",
        "upSince": up_since,
        "env": [{"var": var.value, "value": environ.get(var.value)} for var in _SYSTEM_ENV_VARS],
    }


def resolve_config(
    document: Mapping[str, Any],
    environ: Mapping[str, str] | None = None,
    secret_provider: SecretProvider | None = None,
    fetcher: RemoteConfigFetcher | None = None,
    up_since: float | None = None,
) -> dict[str, Any]:
    """Layer environment presets and defaults over ``document``.

    Returns a new dict; ``document`` is not modified.
    """
    environ = os.environ if environ is None else environ
    config = copy.deepcopy(dict(document))

    spec = config.get("spec")
    if spec is None:
        spec = config["spec"] = {}
    if isinstance(spec, dict):
        _env_presets(spec, environ)

    config = _apply_defaults(config)
    config["system"] = _system_info(environ, time.time() if up_since is None else up_since)
    if secret_provider is not None:
        config["salt"] = secret_provider.get_salt()

    if config["spec"]["dataSource"]["provider"] == ConfigPolicy.REMOTE_PROVIDER.value:
        config = _fetch_remote(config, fetcher)

    return config


def _fetch_remote(config: dict[str, Any], fetcher: RemoteConfigFetcher | None) -> dict[str, Any]:
    if fetcher is None:
        raise ConfigError(
            f"dataSource provider {ConfigPolicy.REMOTE_PROVIDER.value!r} needs a remote fetcher"
        )
    try:
        remote = fetcher.fetch(config)
    except ConfigError:
        raise
    except Exception as e:
        raise ConfigError(f"Unable to fetch remote configuration: {e}") from e
    if not isinstance(remote, dict):
        raise ConfigError("Remote configuration must be a mapping")

    fetched = _apply_defaults(remote)
    fetched.setdefault("system", config["system"])
    if "salt" in config:
        fetched.setdefault("salt", config["salt"])
    logger.info("Loaded configuration from remote data source")
    return fetched


def load_config(
    path: str | Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    secret_provider: SecretProvider | None = None,
    fetcher: RemoteConfigFetcher | None = None,
    up_since: float | None = None,
) -> dict[str, Any]:
    environ = os.environ if environ is None else environ
    if secret_provider is None:
        secret_provider = FileSecretProvider(environ)
    document = read_document(path, environ)
    return resolve_config(document, environ, secret_provider, fetcher, up_since)


def acl_notations(config: Mapping[str, Any]) -> tuple[list[str], list[str]]:
    spec: Spec = _validate(Spec, config.get("spec") or {})
    acl: AccessControlListSpec = spec.accessControlList
    return list(acl.allow), list(acl.deny)


# ---------------------------------------------------------------------------
# Snapshot store
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ConfigSnapshot:
    config: dict[str, Any]
    acl: AccessControlList
    loaded_at: float = field(default_factory=time.time)


class ConfigStore:
    """Owns the published configuration snapshot.

    Readers grab ``store.current`` once and evaluate against it; ``reload``
    builds a complete replacement before publishing it.
    """

    def __init__(
        self,
        loader: Callable[[], dict[str, Any]] | None = None,
        *,
        path: str | Path | None = None,
        environ: Mapping[str, str] | None = None,
        secret_provider: SecretProvider | None = None,
        fetcher: RemoteConfigFetcher | None = None,
    ) -> None:
        self.up_since = time.time()
        self.stats = EvaluationStats()
        self._snapshot: ConfigSnapshot | None = None
        self._reload_lock = threading.Lock()

        if loader is None:
            def loader() -> dict[str, Any]:
                return load_config(
                    path,
                    environ=environ,
                    secret_provider=secret_provider,
                    fetcher=fetcher,
                    up_since=self.up_since,
                )
        self._loader = loader

    @property
    def current(self) -> ConfigSnapshot:
        snapshot = self._snapshot
        if snapshot is None:
            raise ConfigError("No configuration has been loaded")
        return snapshot

    @property
    def acl(self) -> AccessControlList:
        return self.current.acl

    def reload(self) -> ConfigSnapshot:
        with self._reload_lock:
            try:
                config = self._loader()
                allow, deny = acl_notations(config)
                acl = AccessControlList.from_notations(allow, deny, stats=self.stats)
            except (ConfigError, AclBuildError) as e:
                if self._snapshot is not None:
                    logger.error(
                        "Configuration reload rejected, keeping snapshot from %s: %s",
                        time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(self._snapshot.loaded_at)),
                        e,
                    )
                raise

            snapshot = ConfigSnapshot(config=config, acl=acl)
            self._snapshot = snapshot

        logger.info(
            "Published ACL snapshot: %d allow, %d deny rules",
            len(acl.allow_rules),
            len(acl.deny_rules),
        )
        return snapshot

    def evaluate(self, address: str | int) -> Verdict:
        return self.current.acl.evaluate(address)
