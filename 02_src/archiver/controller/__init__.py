"""Controller module."""

from .controller import ArchivingController, IArchivingController, RunSession
from .naming import NamingError, generate_filename

__all__ = [
    "ArchivingController",
    "IArchivingController",
    "RunSession",
    "NamingError",
    "generate_filename",
]
