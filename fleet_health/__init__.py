"""Fleet health-checker: concurrent HTTP and JMX checks for registered app servers."""

__version__ = "1.0.0"
