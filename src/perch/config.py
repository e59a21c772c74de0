"""Application configuration.

AppConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(title="Inventory API", api_version="2.1.0", debug=True)
    """

    # Documentation metadata
    title: str = "Perch API"
    api_version: str = "0.1.0"
    description: str = ""

    # Include exception details in 500 responses
    debug: bool = False

    # Emit UnmatchedOverride when a return_override hits nothing
    warn_unmatched_overrides: bool = True

    # Content type for plain ``str`` handler results
    default_content_type: str = "text/plain; charset=utf-8"
