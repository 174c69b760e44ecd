"""Configuration loading and validation"""

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

# Default config search paths (in order)
CONFIG_PATHS = [
    Path("config.yaml"),
    Path.home() / ".config" / "unified-airquality" / "config.yaml",
    Path("/etc/unified-airquality/config.yaml"),
]

DEFAULT_HISTORY_PATH = str(Path.home() / ".config" / "unified-airquality")

# Fields each logical service may publish
SERVICE_FIELDS: dict[str, tuple[str, ...]] = {
    "temperature": ("temperature", "pressure"),
    "humidity": ("humidity",),
    "airquality": ("co", "co2", "no2", "o3", "pm2.5", "pm10", "so2", "voc"),
}

# Non-field keys allowed inside a service block
SERVICE_OPTIONS = {"name", "aqi"}


@dataclass(frozen=True)
class DirectBinding:
    """Publish a field straight from one source's reading."""

    source_id: str

    @property
    def source_ids(self) -> tuple[str, ...]:
        return (self.source_id,)


@dataclass(frozen=True)
class AggregateBinding:
    """Publish a field reduced from several sources' readings."""

    source_ids: tuple[str, ...]
    function: str = "average"


Binding = Union[DirectBinding, AggregateBinding]


@dataclass(frozen=True)
class SourceConfig:
    """Immutable descriptor of one configured data source."""

    id: str
    provider: str
    keys: tuple[str, ...] = ()
    offsets: dict[str, float] = field(default_factory=dict)
    # luftdaten.info
    sensor: str = ""
    # waqi.info
    city: str = ""
    token: str = ""
    # bme280
    i2c_bus: int = 1
    i2c_address: int = 0x76


@dataclass(frozen=True)
class ServiceConfig:
    """One published logical service and its field bindings."""

    kind: str
    name: str = ""
    bindings: dict[str, Binding] = field(default_factory=dict)
    aqi: str = "caqi"


@dataclass
class UpdateConfig:
    interval: int = 120
    history_interval: int = 600

    @property
    def history_frequency(self) -> int:
        """Number of update cycles per history sample (rounded half up)."""
        ratio = self.history_interval / self.interval
        return max(1, int(math.floor(ratio + 0.5)))


@dataclass
class HistoryConfig:
    path: str = DEFAULT_HISTORY_PATH
    filename: str = ""  # No journal when empty
    size: int = 525600  # Rolling store capacity

    @property
    def journal_file(self) -> Optional[Path]:
        if not self.filename:
            return None
        return Path(self.path).expanduser() / self.filename


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: str = ""


@dataclass
class WebConfig:
    enabled: bool = True
    host: str = "0.0.0.0"
    port: int = 8080


@dataclass
class Config:
    name: str = "Unified Air Quality"
    serial_number: str = "UAQ161803398875"
    update: UpdateConfig = field(default_factory=UpdateConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    web: WebConfig = field(default_factory=WebConfig)
    sources: list[SourceConfig] = field(default_factory=list)
    services: dict[str, ServiceConfig] = field(default_factory=dict)

    def get_source(self, source_id: str) -> Optional[SourceConfig]:
        for source in self.sources:
            if source.id == source_id:
                return source
        return None


def _parse_int(value: Any, name: str) -> int:
    """Parse ints given as numbers or strings such as "0x76"."""
    try:
        if isinstance(value, str):
            return int(value, 0)
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid {name}: {value!r}") from e


def parse_source(data: dict[str, Any]) -> SourceConfig:
    """Build a SourceConfig from one entry of the ``sources`` list"""
    if not isinstance(data, dict):
        raise ConfigurationError(f"Source entry must be a mapping: {data!r}")
    if not data.get("id"):
        raise ConfigurationError(f"Source without id: {data}")
    if not data.get("provider"):
        raise ConfigurationError(f"Source '{data['id']}' has no provider")

    keys = data.get("keys") or []
    if not isinstance(keys, (list, tuple)):
        raise ConfigurationError(f"Source '{data['id']}': keys must be a list, got {keys!r}")

    raw_offsets = data.get("offsets") or {}
    if not isinstance(raw_offsets, dict):
        raise ConfigurationError(f"Source '{data['id']}': offsets must be a mapping")
    try:
        offsets = {str(key): float(value) for key, value in raw_offsets.items()}
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Source '{data['id']}': invalid offset: {e}") from e

    return SourceConfig(
        id=str(data["id"]),
        provider=str(data["provider"]),
        keys=tuple(str(key) for key in keys),
        offsets=offsets,
        sensor=str(data.get("sensor", "")),
        city=str(data.get("city", "")),
        token=str(data.get("token", "")),
        i2c_bus=_parse_int(data.get("i2c_bus", 1), "i2c_bus"),
        i2c_address=_parse_int(data.get("i2c_address", 0x76), "i2c_address"),
    )


def parse_binding(service: str, key: str, value: Any) -> Binding:
    """Turn a raw field binding into a DirectBinding or AggregateBinding"""
    if isinstance(value, str):
        return DirectBinding(value)
    if isinstance(value, dict) and value.get("sources"):
        return AggregateBinding(
            source_ids=tuple(str(s) for s in value["sources"]),
            function=str(value.get("aggregate", "average")),
        )
    raise ConfigurationError(f"Invalid binding for {service}.{key}: {value!r}")


def parse_service(kind: str, data: dict[str, Any]) -> ServiceConfig:
    """Build a ServiceConfig from one block of the ``services`` mapping"""
    if kind not in SERVICE_FIELDS:
        raise ConfigurationError(f"Unknown service '{kind}'")
    if not isinstance(data, dict):
        raise ConfigurationError(f"Service '{kind}' must be a mapping: {data!r}")

    bindings: dict[str, Binding] = {}
    for key, value in data.items():
        if key in SERVICE_OPTIONS:
            continue
        if key not in SERVICE_FIELDS[kind]:
            logger.warning(f"Ignoring unknown field '{key}' for service '{kind}'")
            continue
        bindings[key] = parse_binding(kind, key, value)

    return ServiceConfig(
        kind=kind,
        name=str(data.get("name", "")),
        bindings=bindings,
        aqi=str(data.get("aqi") or "caqi"),
    )


def validate_config(config: Config) -> None:
    """
    Check cross references between sources and services.

    Raises:
        ConfigurationError: On duplicate source ids or bindings that
            reference a source which is not configured
    """
    known: set[str] = set()
    for source in config.sources:
        if source.id in known:
            raise ConfigurationError(f"Duplicate source id '{source.id}'")
        known.add(source.id)

    for service in config.services.values():
        for key, binding in service.bindings.items():
            for source_id in binding.source_ids:
                if source_id not in known:
                    raise ConfigurationError(
                        f"Service '{service.kind}' field '{key}' references "
                        f"unknown source '{source_id}'"
                    )

    for name in ("interval", "history_interval"):
        value = getattr(config.update, name)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            raise ConfigurationError(f"update.{name} must be a positive number, got {value!r}")


def _parse_section(cls: type, name: str, data: Any) -> Any:
    """Build one of the simple config sections, e.g. ``update`` or ``web``"""
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ConfigurationError(f"Section '{name}' must be a mapping: {data!r}")
    try:
        return cls(**data)
    except TypeError as e:
        raise ConfigurationError(f"Invalid '{name}' section: {e}") from e


def parse_config(data: dict[str, Any]) -> Config:
    """Build and validate a Config from already-parsed YAML data"""
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration must be a mapping")

    raw_sources = data.get("sources") or []
    if not isinstance(raw_sources, list):
        raise ConfigurationError("'sources' must be a list")
    raw_services = data.get("services") or {}
    if not isinstance(raw_services, dict):
        raise ConfigurationError("'services' must be a mapping")

    sources = [parse_source(entry) for entry in raw_sources]
    services = {
        kind: parse_service(kind, block if block is not None else {})
        for kind, block in raw_services.items()
    }

    config = Config(
        name=data.get("name", Config.name),
        serial_number=data.get("serial_number", Config.serial_number),
        update=_parse_section(UpdateConfig, "update", data.get("update")),
        history=_parse_section(HistoryConfig, "history", data.get("history")),
        logging=_parse_section(LoggingConfig, "logging", data.get("logging")),
        web=_parse_section(WebConfig, "web", data.get("web")),
        sources=sources,
        services=services,
    )
    validate_config(config)
    return config


def find_config_file() -> Optional[Path]:
    """Find config file in standard locations"""
    for path in CONFIG_PATHS:
        if path.exists():
            return path
    return None


def load_config(config_path: Optional[str] = None) -> Config:
    """Load configuration from YAML file"""
    if config_path:
        path = Path(config_path)
    else:
        path = find_config_file()

    if path is None or not path.exists():
        logger.warning("No config file found, using defaults")
        return Config()

    logger.info(f"Loading config from: {path}")

    with open(path) as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Cannot parse {path}: {e}") from e

    return parse_config(data)
