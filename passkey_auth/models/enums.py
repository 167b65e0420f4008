"""
Enums for passkey-auth models.
"""

from enum import Enum


class DeviceType(str, Enum):
    """Whether a credential is bound to one authenticator or synced across devices."""

    SINGLE_DEVICE = "singleDevice"
    MULTI_DEVICE = "multiDevice"


class CeremonyKind(str, Enum):
    """Which ceremony a pending challenge was issued for."""

    REGISTRATION = "registration"
    AUTHENTICATION = "authentication"


class Transport(str, Enum):
    """Transport hints an authenticator may report for a credential."""

    BLE = "ble"
    CABLE = "cable"
    HYBRID = "hybrid"
    INTERNAL = "internal"
    NFC = "nfc"
    SMART_CARD = "smart-card"
    USB = "usb"

    @classmethod
    def normalize(cls, values: list[str] | None) -> list[str] | None:
        """Keep known transport hints in their reported order, dropping duplicates."""
        if values is None:
            return None
        known = {t.value for t in cls}
        result: list[str] = []
        for value in values:
            if value in known and value not in result:
                result.append(value)
        return result
