"""Backend for the online code editor: execution gateway and live preview."""

__version__ = "0.1.0"
