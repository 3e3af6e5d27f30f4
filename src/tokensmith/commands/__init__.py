"""Built-in CLI sub-commands for tokensmith.

* :mod:`~tokensmith.commands.token` -- obtain, refresh, revoke, and inspect
  tokens against the configured authorization server.
"""
