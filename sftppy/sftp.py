from typing import Any, Callable, Dict, Optional, Union
from urllib.parse import urlparse

from .auth import Basic, Key
from .config import Retry
from .core import SftpClient
from .settings import HostKeys

HookType = Callable[..., Any]
AuthType = Union[Basic, Key]


class SftpPy:
    """
    Factory for SFTP clients that share one configuration.

    Parses an endpoint URL once, checks credentials and host key settings,
    and hands out `SftpClient` instances preconfigured with all of it.
    """

    def __init__(
        self,
        endpoint: str,
        auth: Optional[AuthType] = None,
        retry: Optional[Retry] = None,
        host_keys: Optional[HostKeys] = None,
        hooks: Optional[Dict[str, HookType]] = None,
        **options: Any,
    ) -> None:
        """Set up SFTP connection parameters and shared configuration.

        Args:
            endpoint: URL like sftp://server.com or ssh://server.com:2222
            auth: Password or key credentials for the login
            retry: How to retry a failing connection attempt
            host_keys: Server host key verification settings
            hooks: Listeners for transport events (ready, error, end, close)
            **options: Any other asyncssh connection option, passed through

        Raises:
            TypeError: If endpoint isn't a string
            ValueError: If the endpoint scheme is wrong or has no host
        """
        if not isinstance(endpoint, str):
            raise TypeError("Endpoint must be a string.")

        # Parse the SFTP URL to extract connection details
        url = urlparse(endpoint)

        if url.scheme not in {"sftp", "ssh"}:
            raise ValueError("Endpoint must start with 'sftp://' or 'ssh://'.")

        if not url.hostname:
            raise ValueError("Endpoint must name a host.")

        # Store connection info from URL
        self.endpoint: str = endpoint
        self.host: str = url.hostname
        self.port: int = url.port or 22

        # Credentials in the URL are used when no auth object is given
        if auth is None and url.username and url.password:
            auth = Basic(user=url.username, password=url.password)

        self.auth: Optional[AuthType] = auth
        self.retry: Retry = retry or Retry()
        self.host_keys: HostKeys = host_keys or HostKeys()
        self.hooks: Dict[str, HookType] = hooks or {}
        self.options: Dict[str, Any] = options

        if self.auth is not None and not isinstance(self.auth, (Basic, Key)):
            raise ValueError("SFTP supports Basic (password) or Key authentication")

    def config(self) -> Dict[str, Any]:
        """Connection options for SftpClient, credentials and host keys included."""
        config: Dict[str, Any] = {"host": self.host, "port": self.port}
        if self.auth is not None:
            config.update(self.auth.options())
        config.update(self.host_keys.options())
        config.update(self.options)
        return config

    def client(self) -> SftpClient:
        """Create an SFTP client using this configuration.

        Returns:
            SftpClient: Ready-to-connect client instance
        """
        return SftpClient(retry=self.retry, hooks=self.hooks, **self.config())
