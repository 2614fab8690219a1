import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional


@dataclass
class HostKeys:
    """
    Server host key verification for SSH connections.

    SSH authenticates the server through its host key. By default asyncssh
    checks it against the user's ~/.ssh/known_hosts; a different file can be
    given, or checking can be turned off for throwaway test servers.

    Attributes:
        verify: Whether to check the server host key at all.
               When False, connections are vulnerable to man-in-the-middle attacks.
        known: Path to a known_hosts file to check against instead of the default.
    """

    verify: bool = True  # Whether to verify the server host key
    known: Optional[str] = None  # Path to a custom known_hosts file

    def __post_init__(self) -> None:
        """
        Validate host key settings.

        Returns:
            None

        Raises:
            ValueError: If the known_hosts file is missing or not a file.
        """
        if self.known:
            path = Path(self.known).expanduser()
            if not path.exists():
                raise ValueError(f"Known hosts file not found: {self.known}")
            if not path.is_file():
                raise ValueError(f"Known hosts path is not a file: {self.known}")

        # Security warning for disabled host key verification
        if not self.verify:
            warnings.warn(
                "SSH host key verification is disabled. "
                "This makes connections vulnerable to man-in-the-middle attacks. "
                "Only use this setting in development or trusted network environments.",
                UserWarning,
                stacklevel=3,
            )

        if not self.verify and self.known:
            warnings.warn(
                "Host key verification is disabled, but a known_hosts file is configured. "
                "The file will be ignored.",
                UserWarning,
                stacklevel=3,
            )

    def options(self) -> Dict[str, Any]:
        """Connection options understood by asyncssh.

        Returns:
            Dict with `known_hosts`, or an empty dict to keep asyncssh's default
        """
        if not self.verify:
            # asyncssh treats known_hosts=None as "accept any host key"
            return {"known_hosts": None}
        if self.known:
            return {"known_hosts": str(Path(self.known).expanduser())}
        return {}
