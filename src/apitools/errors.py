"""
Startup-time error base classes.

Anything raised from here on means the service was configured wrongly and
must not start: a bad JWT algorithm name, missing key material, a
malformed time-slot string or an invalid environment value. These are
raised while building components, never while serving a request, and
are not worth retrying.
"""


class ConfigurationError(Exception):
    """Base class for fatal configuration errors detected at startup."""


class ConfigError(ConfigurationError):
    """
    Raised by ApiConfig.validate() / from_env() for bad settings.

    Carries the offending setting name so the startup log points straight
    at the variable to fix.
    """

    def __init__(self, setting: str, message: str):
        super().__init__(f"{setting}: {message}")
        self.setting = setting
