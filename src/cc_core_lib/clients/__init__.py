"""HTTP clients for the ledger and notification services"""

from cc_core_lib.clients.base import BaseServiceClient
from cc_core_lib.clients.ledger_service_client import LedgerServiceClient
from cc_core_lib.clients.notification_service_client import NotificationServiceClient

__all__ = [
    "BaseServiceClient",
    "LedgerServiceClient",
    "NotificationServiceClient",
]
