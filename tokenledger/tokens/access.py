"""
Access Control

Maps each privileged capability to the single identity allowed to exercise
it. There is no delegation, role hierarchy or transfer of authority.
"""

from enum import Enum
from typing import Dict, Mapping

from ..address import AddressLike, normalize_address
from ..exceptions import UnauthorizedError
from ..logger import get_logger

logger = get_logger(__name__)


class Capability(str, Enum):
    MINT = "mint"
    PAUSE = "pause"


class AccessControl:
    """Capability → authority lookup."""

    def __init__(self, grants: Mapping[Capability, AddressLike]):
        self._grants: Dict[Capability, str] = {
            Capability(cap): normalize_address(authority)
            for cap, authority in grants.items()
        }

    @classmethod
    def single(cls, authority: AddressLike) -> "AccessControl":
        """Grant every capability to one authority."""
        return cls({cap: authority for cap in Capability})

    def authority_of(self, capability: Capability):
        return self._grants.get(Capability(capability))

    def is_authorized(self, caller: str, capability: Capability) -> bool:
        authority = self.authority_of(capability)
        return authority is not None and authority == caller

    def authorize(self, caller: str, capability: Capability) -> None:
        """
        Raises:
            UnauthorizedError: if *caller* does not hold *capability*
        """
        if not self.is_authorized(caller, capability):
            logger.warning("Unauthorized %s attempt by %s", Capability(capability).value, caller)
            raise UnauthorizedError(caller, Capability(capability).value)

    def to_dict(self) -> Dict[str, str]:
        return {cap.value: authority for cap, authority in self._grants.items()}
