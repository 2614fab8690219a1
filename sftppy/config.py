from dataclasses import dataclass


@dataclass
class Retry:
    """
    Retry configuration for establishing an SFTP connection.

    Defines how many times the client will try again when the SSH transport
    or the SFTP sub-channel cannot be brought up. Delays grow exponentially
    so a host that is briefly unavailable is not hammered with handshakes.

    Retry applies only to connection establishment. Once a session is ready,
    individual operations are issued exactly once and fail straight away.

    Attributes:
        retries: Number of retries after the initial attempt.
                 A value of 2 means at most 3 connection attempts in total.
        factor: Exponential multiplier applied to the delay on every retry.
        minimum: Delay in milliseconds before the first retry.
                 Delay before retry n (counting from 1) = minimum * factor ** (n - 1).
    """

    retries: int = 2  # Retries after the initial attempt
    factor: float = 2  # Exponential backoff multiplier
    minimum: float = 2000  # Initial delay in milliseconds

    def __post_init__(self) -> None:
        """
        Validate retry configuration after initialization.

        Returns:
            None

        Raises:
            ValueError: If any configuration value is out of range.
        """
        if self.retries < 0:
            raise ValueError("Retries cannot be negative")

        if self.factor < 1:
            raise ValueError("Backoff factor must be at least 1")

        if self.minimum < 0:
            raise ValueError("Minimum retry delay cannot be negative")

    @property
    def attempts(self) -> int:
        """Total number of connection attempts, the initial one included."""
        return self.retries + 1

    def should_retry(self, attempt: int) -> bool:
        """Tell whether another attempt is allowed after attempt number `attempt` failed.

        Args:
            attempt: 1-based number of the attempt that just failed

        Returns:
            bool: True while the total attempt budget is not used up
        """
        return attempt < self.attempts

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait before the retry that follows failed attempt `attempt`.

        Args:
            attempt: 1-based number of the attempt that just failed

        Returns:
            float: Delay in seconds, suitable for asyncio.sleep
        """
        return self.minimum * self.factor ** (attempt - 1) / 1000
