"""Channel state tracking, CID lists and CID sets for peer-to-peer data transfers."""

__version__ = "0.1.0"

__all__ = [
    "channel_state",
    "channels",
    "cidlists",
    "cids",
    "cidsets",
    "datastore",
    "encoding",
    "errors",
    "events",
    "fsm",
    "identifiers",
    "internal",
    "migrations",
]