"""RecordWatch - Record Club review relay for Discord."""

__version__ = "0.3.0"
