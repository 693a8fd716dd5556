"""Remote license activation and checks."""

from veoqueue.core.licensing.client import LicenseClient, build_license_api
from veoqueue.core.licensing.models import LicenseData, LicenseStatus
from veoqueue.core.licensing.monitor import LicenseMonitor

__all__ = [
    "LicenseClient",
    "LicenseData",
    "LicenseMonitor",
    "LicenseStatus",
    "build_license_api",
]
