import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

Username = str
Password = str
Options = Dict[str, Any]


@dataclass
class Basic:
    """
    Password authentication for an SSH login.

    The password travels inside the encrypted SSH channel, so unlike plain
    FTP it is never exposed on the wire. It is still the weakest SSH login
    method; prefer `Key` where the server allows it.

    Attributes:
        user: Login name on the remote host.
        password: Password for that login.
    """

    user: Username
    password: Password

    def __post_init__(self) -> None:
        """
        Validate the credentials.

        Returns:
            None

        Raises:
            ValueError: If the user or password is empty.
        """
        if not self.user.strip():
            raise ValueError("Username cannot be empty or whitespace")

        if not self.password:
            raise ValueError("Password cannot be empty")

        # Security warnings for potentially weak credentials
        if len(self.password) < 8:
            warnings.warn(
                "Password is shorter than 8 characters. "
                "Consider using a stronger password or key authentication."
            )

        if self.password.lower() in ["password", "123456", "admin", "root"]:
            warnings.warn(
                "Password appears to be a common weak password. "
                "Use a strong, unique password for better security."
            )

    def options(self) -> Options:
        """Connection options understood by asyncssh.

        Returns:
            Dict with `username` and `password`
        """
        return {"username": self.user, "password": self.password}


@dataclass
class Key:
    """
    Public key authentication for an SSH login.

    Attributes:
        user: Login name on the remote host.
        path: Private key file to offer to the server.
        passphrase: Passphrase protecting the private key, if any.
    """

    user: Username
    path: str
    passphrase: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.user.strip():
            raise ValueError("Username cannot be empty or whitespace")

        key = Path(self.path).expanduser()
        if not key.exists():
            raise ValueError(f"Private key file not found: {self.path}")
        if not key.is_file():
            raise ValueError(f"Private key path is not a file: {self.path}")

    def options(self) -> Options:
        options: Options = {
            "username": self.user,
            "client_keys": [str(Path(self.path).expanduser())],
        }
        if self.passphrase is not None:
            options["passphrase"] = self.passphrase
        return options
