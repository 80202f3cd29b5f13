"""Abstract repositories for the shipping and tax rate tables."""

from __future__ import annotations

from abc import ABC, abstractmethod

from minalesh.domain.model.rates import ShippingRate, TaxRate


class ShippingRateRepository(ABC):

    @abstractmethod
    def find(self, method_id: str, zone_id: str | None = None) -> ShippingRate | None:
        """Return the rate for a method, restricted to a zone when given."""

    @abstractmethod
    def save(self, rate: ShippingRate) -> None:
        """Persist a new or updated shipping rate."""


class TaxRateRepository(ABC):

    @abstractmethod
    def list_active(self, country: str) -> list[TaxRate]:
        """Return active tax rates for a country, in any order."""

    @abstractmethod
    def save(self, rate: TaxRate) -> None:
        """Persist a new or updated tax rate."""
