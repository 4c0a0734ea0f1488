"""
tender_shared — settings, constants, and models shared by the tender writer.

Usage:
    from tender_shared.config import settings
    from tender_shared.db import get_session_factory, init_schema
    from tender_shared.models.messages import SanralTenderMessage
    from tender_shared.models.tender import TenderRecord
    from tender_shared.constants import SourceType, NO_DEADLINE
"""

__version__ = "0.1.0"
