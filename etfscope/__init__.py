from etfscope.basket import ETFBasket
from etfscope.channel import SearchProvider, WebSearchChannel
from etfscope.errors import DataUnavailable, DuplicateInstrument
from etfscope.fetcher import ETFFetcher
from etfscope.models import (
    InstrumentHistory,
    InstrumentProfile,
    PricePoint,
    ProfileLookup,
    RawModelResponse,
    Source,
)

__all__ = [
    "ETFBasket",
    "ETFFetcher",
    "WebSearchChannel",
    "SearchProvider",
    "DataUnavailable",
    "DuplicateInstrument",
    "InstrumentHistory",
    "InstrumentProfile",
    "PricePoint",
    "ProfileLookup",
    "RawModelResponse",
    "Source",
]
