"""binctl: install, uninstall, and reinstall a compiled binary into a prefix."""

__version__ = "0.1.0"
