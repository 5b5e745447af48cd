"""
Domain Models Package
Export all domain entities
"""

from .entities import (
    # Enums
    ExecutionStatus,
    Frequency,

    # Entities
    BatchReport,
    ExecutionRecord,
    Holding,
    MalformedSip,
    PriceQuote,
    SIP,
    SipRunDetail,
)

__all__ = [
    # Enums
    "ExecutionStatus",
    "Frequency",

    # Entities
    "BatchReport",
    "ExecutionRecord",
    "Holding",
    "MalformedSip",
    "PriceQuote",
    "SIP",
    "SipRunDetail",
]
