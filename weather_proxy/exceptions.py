"""Exceptions raised inside the weather proxy.

Upstream transport and protocol failures are not exceptions here: the weather
client classifies them into an UpstreamResult. Only conditions that no single
request can recover from are raised.
"""


class WeatherProxyError(Exception):
    """Base class for weather proxy errors."""


class ConfigurationError(WeatherProxyError):
    """Raised when the service cannot call the upstream provider as configured.

    Attributes:
        setting: Name of the missing or invalid setting
    """

    def __init__(self, setting: str, message: str):
        self.setting = setting
        super().__init__(message)
