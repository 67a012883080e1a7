"""Ordered registry of deployable services."""
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from pydantic import ValidationError

from pvedeploy.core.errors import ConfigError
from pvedeploy.models.service import ServiceDescriptor

# Built-in home lab services, deployed in this order.
DEFAULT_SERVICES: List[Dict[str, Any]] = [
    {'id': 100, 'name': 'pihole', 'ip': '10.0.0.21', 'ram': 1024, 'cpu': 1, 'disk': '8G'},
    {'id': 101, 'name': 'wireguard', 'ip': '10.0.0.22', 'ram': 512, 'cpu': 1, 'disk': '4G'},
    {'id': 102, 'name': 'rustdesk', 'ip': '10.0.0.23', 'ram': 1024, 'cpu': 1, 'disk': '8G'},
    {'id': 103, 'name': 'samba', 'ip': '10.0.0.24', 'ram': 512, 'cpu': 1, 'disk': '4G'},
    {'id': 104, 'name': 'nginx-proxy-manager', 'ip': '10.0.0.25', 'ram': 1024, 'cpu': 1, 'disk': '8G'},
]


class ServiceRegistry:
    """Immutable, ordered collection of service descriptors.

    Ids and names are unique; both are checked when the registry is built.
    """

    def __init__(self, services: Sequence[ServiceDescriptor]):
        self._services: Tuple[ServiceDescriptor, ...] = tuple(services)
        self._check_unique()

    @classmethod
    def from_records(cls, records: Sequence[Dict[str, Any]]) -> "ServiceRegistry":
        """Build a registry from raw mappings (YAML entries or DEFAULT_SERVICES).

        Raises:
            ConfigError: If any record fails validation
        """
        if not records:
            raise ConfigError("Service registry is empty")

        services = []
        for index, record in enumerate(records, start=1):
            if not isinstance(record, dict):
                raise ConfigError(f"Service #{index} must be a mapping, got {type(record).__name__}")
            try:
                services.append(ServiceDescriptor.model_validate(record))
            except ValidationError as e:
                name = record.get('name', f'#{index}')
                raise ConfigError(f"Invalid service '{name}': {e}") from e
        return cls(services)

    @classmethod
    def default(cls) -> "ServiceRegistry":
        return cls.from_records(DEFAULT_SERVICES)

    def _check_unique(self) -> None:
        seen_ids = set()
        seen_names = set()
        for service in self._services:
            if service.id in seen_ids:
                raise ConfigError(f"Duplicate container id {service.id} in service registry")
            if service.name in seen_names:
                raise ConfigError(f"Duplicate service name '{service.name}' in service registry")
            seen_ids.add(service.id)
            seen_names.add(service.name)

    def __iter__(self) -> Iterator[ServiceDescriptor]:
        return iter(self._services)

    def __len__(self) -> int:
        return len(self._services)

    def __getitem__(self, index: int) -> ServiceDescriptor:
        return self._services[index]

    @property
    def services(self) -> Tuple[ServiceDescriptor, ...]:
        return self._services

    def get(self, key: Union[int, str]) -> Optional[ServiceDescriptor]:
        """Look up a service by container id or by name.

        Numeric strings are treated as ids.
        """
        if isinstance(key, str) and key.isdigit():
            key = int(key)
        for service in self._services:
            if isinstance(key, int) and service.id == key:
                return service
            if isinstance(key, str) and service.name == key:
                return service
        return None
