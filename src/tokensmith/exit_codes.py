"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~tokensmith.exceptions.TokensmithError` subclass.
Shell wrappers can inspect the exit code to tell a bad configuration
apart from a rejected token request without parsing stderr.

Example::

    $ tokensmith token refresh ec1a59d298
    $ echo $?
    4   # EXIT_REQUEST_FAILURE -- the authorization server said no
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_CONFIGURATION_ERROR = 2
"""Settings are missing, contradictory, or a protocol field was overridden."""

EXIT_CONSTRUCTION_ERROR = 3
"""A token response lacks the data needed to build an access token."""

EXIT_REQUEST_FAILURE = 4
"""The token or revoke endpoint could not be reached or rejected the request."""
