__version__ = "1.0.0"
__author__ = "Andrew Hernandez"
__email__ = "andromedeyz@hotmail.com"
__license__ = "MIT"
__description__ = "An async SFTP client library for Python with retrying connections, one-shot operations and recursive directory helpers."
__url__ = "http://github.com/ApaxPhoenix/SftpPy"

# Make sure you're running a modern Python version
import sys

if sys.version_info < (3, 9):
    raise RuntimeError("SftpPy needs Python 3.9 or newer to work properly")

# The main SftpPy factory - build clients from an sftp:// endpoint
from .sftp import SftpPy

# The client itself - one session, every remote file operation
from .core import SftpClient

# Fine-tune how connection attempts are retried
from .config import Retry

# Ways to log in
from .auth import (
    Basic,  # Username and password
    Key,  # Username and private key file
)

# Server host key checking
from .settings import HostKeys

# What listings and stat calls give back
from .entries import Entry, Rights, Stat

# Listing filters
from .pattern import Glob, Regex

# Everything that can go wrong
from .errors import (
    ConnectError,
    NoConnectionError,
    NotFoundError,
    OperationError,
    SftpError,
    ValidationError,
)

# Everything you can import and use
__all__ = [
    # The main classes you'll work with
    "SftpPy",
    "SftpClient",
    # Configuration options
    "Retry",
    "HostKeys",
    # Authentication types
    "Basic",
    "Key",
    # Results
    "Entry",
    "Rights",
    "Stat",
    # Patterns
    "Glob",
    "Regex",
    # Errors
    "SftpError",
    "ConnectError",
    "OperationError",
    "NotFoundError",
    "ValidationError",
    "NoConnectionError",
    # Package info
    "__version__",
    "__author__",
    "__email__",
    "__license__",
    "__description__",
    "__url__",
]
