"""Windows device enumeration via SetupAPI and CfgMgr32 (ctypes)."""

import ctypes
import sys
from typing import Any, Dict, List, Optional

from .. import constants as c
from ..classifier import classified
from ..errors import BackendInitError, RecordExtractionError
from ..record import DeviceRecord, DriverInfo
from ..util.logging import get_logger
from .base import PlatformBackend, RawDescriptor
from .registry import register_backend

logger = get_logger(__name__)

DIGCF_PRESENT = 0x02
DIGCF_ALLCLASSES = 0x04

# SPDRP_* property codes for SetupDiGetDeviceRegistryPropertyW
SPDRP_DEVICEDESC = 0x00
SPDRP_HARDWAREID = 0x01
SPDRP_CLASS = 0x07
SPDRP_CLASSGUID = 0x08
SPDRP_DRIVER = 0x09
SPDRP_CONFIGFLAGS = 0x0A
SPDRP_MFG = 0x0B
SPDRP_FRIENDLYNAME = 0x0C
SPDRP_PHYSICAL_DEVICE_OBJECT_NAME = 0x0E
SPDRP_SERVICE = 0x04

CONFIGFLAG_HIDDEN = 0x00000010
CR_SUCCESS = 0
MAX_DEVICE_ID_LEN = 200

REG_DWORD = 4
REG_MULTI_SZ = 7

INVALID_HANDLE_VALUE = ctypes.c_void_p(-1).value


class GUID(ctypes.Structure):
    _fields_ = [
        ("Data1", ctypes.c_ulong),
        ("Data2", ctypes.c_ushort),
        ("Data3", ctypes.c_ushort),
        ("Data4", ctypes.c_ubyte * 8),
    ]

    def __str__(self) -> str:
        tail = bytes(self.Data4).hex()
        return f"{{{self.Data1:08x}-{self.Data2:04x}-{self.Data3:04x}-{tail[:4]}-{tail[4:]}}}"


class SP_DEVINFO_DATA(ctypes.Structure):
    _fields_ = [
        ("cbSize", ctypes.c_ulong),
        ("ClassGuid", GUID),
        ("DevInst", ctypes.c_ulong),
        ("Reserved", ctypes.POINTER(ctypes.c_ulong)),
    ]


def _bind_api():
    """Load setupapi/cfgmgr32 and declare the signatures we call."""
    from ctypes import wintypes

    setupapi = ctypes.windll.setupapi
    cfgmgr32 = ctypes.windll.CfgMgr32

    setupapi.SetupDiGetClassDevsW.argtypes = [
        ctypes.POINTER(GUID), wintypes.LPCWSTR, wintypes.HWND, wintypes.DWORD,
    ]
    setupapi.SetupDiGetClassDevsW.restype = ctypes.c_void_p

    setupapi.SetupDiEnumDeviceInfo.argtypes = [
        ctypes.c_void_p, wintypes.DWORD, ctypes.POINTER(SP_DEVINFO_DATA),
    ]
    setupapi.SetupDiEnumDeviceInfo.restype = wintypes.BOOL

    setupapi.SetupDiGetDeviceRegistryPropertyW.argtypes = [
        ctypes.c_void_p, ctypes.POINTER(SP_DEVINFO_DATA), wintypes.DWORD,
        ctypes.POINTER(wintypes.DWORD), ctypes.c_void_p, wintypes.DWORD,
        ctypes.POINTER(wintypes.DWORD),
    ]
    setupapi.SetupDiGetDeviceRegistryPropertyW.restype = wintypes.BOOL

    setupapi.SetupDiGetDeviceInstanceIdW.argtypes = [
        ctypes.c_void_p, ctypes.POINTER(SP_DEVINFO_DATA), wintypes.LPWSTR,
        wintypes.DWORD, ctypes.POINTER(wintypes.DWORD),
    ]
    setupapi.SetupDiGetDeviceInstanceIdW.restype = wintypes.BOOL

    setupapi.SetupDiClassGuidsFromNameW.argtypes = [
        wintypes.LPCWSTR, ctypes.POINTER(GUID), wintypes.DWORD, ctypes.POINTER(wintypes.DWORD),
    ]
    setupapi.SetupDiClassGuidsFromNameW.restype = wintypes.BOOL

    setupapi.SetupDiDestroyDeviceInfoList.argtypes = [ctypes.c_void_p]
    setupapi.SetupDiDestroyDeviceInfoList.restype = wintypes.BOOL

    cfgmgr32.CM_Get_Parent.argtypes = [ctypes.POINTER(wintypes.DWORD), wintypes.DWORD, wintypes.ULONG]
    cfgmgr32.CM_Get_Parent.restype = wintypes.DWORD

    cfgmgr32.CM_Get_Device_IDW.argtypes = [wintypes.DWORD, wintypes.LPWSTR, wintypes.ULONG, wintypes.ULONG]
    cfgmgr32.CM_Get_Device_IDW.restype = wintypes.DWORD

    return setupapi, cfgmgr32


def device_descriptor_to_record(descriptor: Dict[str, Any]) -> DeviceRecord:
    """Build a classified record from an eagerly-read SetupAPI descriptor dict."""
    instance_id = descriptor.get("instance_id", "")
    if not instance_id:
        raise RecordExtractionError("SetupAPI device without an instance ID")

    name = descriptor.get("friendly_name") or descriptor.get("description", "")
    class_guid = descriptor.get("class_guid", "").lower()
    class_name = descriptor.get("class_name", "")
    driver = descriptor.get("driver", "")
    config_flags = int(descriptor.get("config_flags", 0) or 0)
    hardware_ids = descriptor.get("hardware_ids") or []
    if isinstance(hardware_ids, str):
        hardware_ids = [hardware_ids]

    properties = {
        c.PROP_CLASS_GUID: class_guid,
        c.PROP_CLASS_NAME: class_name,
        c.PROP_DEVICE_DESCRIPTION: descriptor.get("description", ""),
        c.PROP_MANUFACTURER: descriptor.get("manufacturer", ""),
        c.PROP_PHYSICAL_OBJECT_NAME: descriptor.get("physical_object_name", ""),
        c.PROP_CONFIG_FLAGS: f"0x{config_flags:08X}",
        "SERVICE": descriptor.get("service", ""),
        c.PROP_HARDWARE_IDS: ";".join(hardware_ids),
    }
    properties = {k: v for k, v in properties.items() if v}

    record = DeviceRecord(
        syspath=instance_id,
        parent_syspath=descriptor.get("parent_instance_id", ""),
        dev_path=instance_id,
        devnode=descriptor.get("physical_object_name", ""),
        name=name,
        driver=driver,
        subsystem=class_name,
        properties=properties,
        driver_info=DriverInfo(
            has_driver=bool(driver),
            name=descriptor.get("service", "") or driver,
            provider=descriptor.get("manufacturer", ""),
        ) if driver else None,
        platform=c.PLATFORM_WINDOWS,
    )
    return classified(record, backend_hidden=bool(config_flags & CONFIGFLAG_HIDDEN))


@register_backend
class SetupApiBackend(PlatformBackend):
    """Reads every present device from a SetupAPI device information set.

    All properties are copied out while the set is open; records never
    query the OS afterwards.
    """

    name = "setupapi"
    platform = c.PLATFORM_WINDOWS

    def _initialize(self) -> None:
        if not sys.platform.startswith(c.PLATFORM_WINDOWS):
            raise BackendInitError("SetupAPI is only available on Windows")
        try:
            self._setupapi, self._cfgmgr32 = _bind_api()
        except (OSError, AttributeError) as e:
            raise BackendInitError(f"Cannot load SetupAPI: {e}") from e

    def enumerate_all(self) -> List[RawDescriptor]:
        return self._read_info_set(None, DIGCF_PRESENT | DIGCF_ALLCLASSES)

    def enumerate_by_class(self, class_key: str) -> List[RawDescriptor]:
        guid = self._class_guid(class_key)
        if guid is None:
            logger.warning(f"Unknown SetupAPI device class: {class_key}")
            return []
        return self._read_info_set(ctypes.byref(guid), DIGCF_PRESENT)

    def read_properties(self, descriptor: RawDescriptor) -> DeviceRecord:
        return device_descriptor_to_record(descriptor)

    def _class_guid(self, class_name: str) -> Optional[GUID]:
        from ctypes import wintypes

        guid = GUID()
        required = wintypes.DWORD(0)
        if not self._setupapi.SetupDiClassGuidsFromNameW(class_name, ctypes.byref(guid), 1, ctypes.byref(required)):
            return None
        return guid if required.value else None

    def _read_info_set(self, class_guid, flags: int) -> List[Dict[str, Any]]:
        h_dev_info = self._setupapi.SetupDiGetClassDevsW(class_guid, None, None, flags)
        if h_dev_info in (None, INVALID_HANDLE_VALUE):
            raise BackendInitError("SetupDiGetClassDevsW failed")

        descriptors = []
        try:
            index = 0
            while True:
                dev_info_data = SP_DEVINFO_DATA()
                dev_info_data.cbSize = ctypes.sizeof(SP_DEVINFO_DATA)
                if not self._setupapi.SetupDiEnumDeviceInfo(h_dev_info, index, ctypes.byref(dev_info_data)):
                    break
                index += 1
                descriptors.append(self._describe(h_dev_info, dev_info_data))
        finally:
            self._setupapi.SetupDiDestroyDeviceInfoList(h_dev_info)

        logger.debug(f"SetupAPI device information set held {len(descriptors)} devices")
        return descriptors

    def _describe(self, h_dev_info, dev_info_data: SP_DEVINFO_DATA) -> Dict[str, Any]:
        return {
            "instance_id": self._instance_id(h_dev_info, dev_info_data),
            "parent_instance_id": self._parent_instance_id(dev_info_data),
            "friendly_name": self._property(h_dev_info, dev_info_data, SPDRP_FRIENDLYNAME),
            "description": self._property(h_dev_info, dev_info_data, SPDRP_DEVICEDESC),
            "driver": self._property(h_dev_info, dev_info_data, SPDRP_DRIVER),
            "service": self._property(h_dev_info, dev_info_data, SPDRP_SERVICE),
            "manufacturer": self._property(h_dev_info, dev_info_data, SPDRP_MFG),
            "class_name": self._property(h_dev_info, dev_info_data, SPDRP_CLASS),
            "class_guid": self._property(h_dev_info, dev_info_data, SPDRP_CLASSGUID) or str(dev_info_data.ClassGuid),
            "physical_object_name": self._property(h_dev_info, dev_info_data, SPDRP_PHYSICAL_DEVICE_OBJECT_NAME),
            "hardware_ids": self._property(h_dev_info, dev_info_data, SPDRP_HARDWAREID) or [],
            "config_flags": self._property(h_dev_info, dev_info_data, SPDRP_CONFIGFLAGS) or 0,
        }

    def _instance_id(self, h_dev_info, dev_info_data: SP_DEVINFO_DATA) -> str:
        from ctypes import wintypes

        buf = ctypes.create_unicode_buffer(512)
        required = wintypes.DWORD(0)
        if self._setupapi.SetupDiGetDeviceInstanceIdW(h_dev_info, ctypes.byref(dev_info_data), buf, 512, ctypes.byref(required)):
            return buf.value
        return ""

    def _parent_instance_id(self, dev_info_data: SP_DEVINFO_DATA) -> str:
        from ctypes import wintypes

        parent = wintypes.DWORD(0)
        if self._cfgmgr32.CM_Get_Parent(ctypes.byref(parent), dev_info_data.DevInst, 0) != CR_SUCCESS:
            return ""
        buf = ctypes.create_unicode_buffer(MAX_DEVICE_ID_LEN)
        if self._cfgmgr32.CM_Get_Device_IDW(parent.value, buf, MAX_DEVICE_ID_LEN, 0) != CR_SUCCESS:
            return ""
        return buf.value

    def _property(self, h_dev_info, dev_info_data: SP_DEVINFO_DATA, prop: int) -> Any:
        """Read one registry property with two-pass buffer sizing."""
        from ctypes import wintypes

        reg_type = wintypes.DWORD(0)
        required = wintypes.DWORD(0)

        self._setupapi.SetupDiGetDeviceRegistryPropertyW(
            h_dev_info, ctypes.byref(dev_info_data), prop,
            ctypes.byref(reg_type), None, 0, ctypes.byref(required),
        )
        if required.value == 0:
            return ""

        buf = ctypes.create_string_buffer(required.value + 2)
        if not self._setupapi.SetupDiGetDeviceRegistryPropertyW(
            h_dev_info, ctypes.byref(dev_info_data), prop,
            ctypes.byref(reg_type), buf, required.value, ctypes.byref(required),
        ):
            return ""

        if reg_type.value == REG_DWORD:
            return int.from_bytes(buf.raw[:4], "little")
        text = buf.raw[:required.value].decode("utf-16-le", errors="replace")
        if reg_type.value == REG_MULTI_SZ:
            return [s for s in text.split("\x00") if s]
        return text.rstrip("\x00")
