"""Base executor interface for adapter-backed nodes."""

from __future__ import annotations

import abc
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

if TYPE_CHECKING:
    from ..persistence.models import ExecutionStep


class AdapterDirection(str, Enum):
    SENDER = "SENDER"
    RECEIVER = "RECEIVER"


class AdapterDescriptor(BaseModel):
    """Adapter record as stored by the adapter catalog."""

    id: str
    name: Optional[str] = None
    adapter_type: str = Field(..., description="FILE, SFTP, EMAIL, ...")
    direction: AdapterDirection
    configuration: Dict[str, Any] = Field(default_factory=dict)
    active: bool = True

    @field_validator("adapter_type")
    @classmethod
    def _normalise_type(cls, v: str) -> str:
        if not v:
            raise ValueError("adapter_type must be a non-empty string")
        return v.upper()

    @field_validator("direction", mode="before")
    @classmethod
    def _normalise_direction(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v


class AdapterExecutor(metaclass=abc.ABCMeta):
    """Abstract executor for one adapter type and direction."""

    def validate_configuration(self, adapter: AdapterDescriptor) -> None:
        """Check ``adapter.configuration`` (no-op by default).

        Raises:
            ConfigurationInvalid: If the configuration cannot be used.
        """
        pass

    @abc.abstractmethod
    async def execute(
        self,
        adapter: AdapterDescriptor,
        context: Mapping[str, Any],
        step: "ExecutionStep",
    ) -> Dict[str, Any]:
        """Perform the adapter's work and return a result map."""
        raise NotImplementedError
