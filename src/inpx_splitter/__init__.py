"""Split a Flibusta INPX catalog into per-format variant archives."""

__version__ = "0.1.0"
