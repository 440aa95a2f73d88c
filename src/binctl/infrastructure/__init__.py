"""Infrastructure layer: package toolchain backends.

Backends wrap external installers (Cargo, ...) behind the
:class:`~binctl.infrastructure.toolchain.Toolchain` interface.
The service layer bridges between domain models and these backends.
"""
