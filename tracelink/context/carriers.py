"""Carrier access capabilities.

The propagator never touches a carrier directly; it goes through a reader
(`get`) or a writer (`set`). These are OpenTelemetry's text map Getter and
Setter interfaces, so carriers written for OpenTelemetry propagators work
here unchanged.
"""

from __future__ import annotations

from typing import List, Mapping, MutableMapping, Optional

from opentelemetry.propagators.textmap import Getter, Setter

CarrierReader = Getter
CarrierWriter = Setter


class DictCarrierReader(Getter[Mapping[str, str]]):
    """Reads header-like mappings; key lookup is case-insensitive."""

    def get(self, carrier: Mapping[str, str], key: str) -> Optional[List[str]]:
        if carrier is None:
            return None
        value = carrier.get(key)
        if value is None:
            lowered = key.lower()
            for name, candidate in carrier.items():
                if name.lower() == lowered:
                    value = candidate
                    break
        if value is None:
            return None
        if isinstance(value, (list, tuple)):
            return [str(v) for v in value]
        return [str(value)]

    def keys(self, carrier: Mapping[str, str]) -> List[str]:
        return list(carrier.keys()) if carrier else []


class DictCarrierWriter(Setter[MutableMapping[str, str]]):
    """Writes into a mutable mapping, replacing any existing value."""

    def set(self, carrier: MutableMapping[str, str], key: str, value: str) -> None:
        carrier[key] = value


dict_reader = DictCarrierReader()
dict_writer = DictCarrierWriter()
