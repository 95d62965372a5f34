"""nostaro exception hierarchy.

Every failure a command can surface to the operator derives from
[NostaroError][nostaro.core.exceptions.NostaroError], so the CLI entry point
can act as a single error boundary while library code raises precise types.

Exception hierarchy:

```text
NostaroError (base -- never raised directly)
├── ConfigurationError   -- missing/invalid config file or secret key
├── StorageError         -- local cache store failures
├── ProtocolError        -- unparsable ids, keys, tags or user input
├── PublishingError      -- relay publish failures
├── DeliveryError        -- webhook POST failures (never fatal to watch)
├── UploadError          -- blob server failures
└── PaymentError         -- LNURL resolution or payment binary failures
```

Lookups that find nothing return ``None``; absence is never an exception.

See Also:
    [CacheStore][nostaro.core.cache.CacheStore]: Raises
        [StorageError][nostaro.core.exceptions.StorageError].
    [Watcher][nostaro.services.watch.Watcher]: Catches
        [DeliveryError][nostaro.core.exceptions.DeliveryError] per
        notification and keeps running.
"""

from __future__ import annotations


class NostaroError(Exception):
    """Base exception for all nostaro errors.

    Never raised directly -- always use a specific subclass.
    """


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigurationError(NostaroError):
    """Invalid or missing configuration (YAML file, env vars, CLI flags).

    See Also:
        [NostaroConfig][nostaro.core.config.NostaroConfig]: Model whose
            loading raises this error.
    """


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


class StorageError(NostaroError):
    """The cache store is unreachable, unwritable, or returned malformed data.

    Callers of opportunistic writes (caching data just fetched from the
    network) may swallow it; read paths surface it.

    See Also:
        [CacheStore][nostaro.core.cache.CacheStore]: Wraps every
            ``sqlite3.Error`` into this exception.
    """


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


class ProtocolError(NostaroError):
    """Unparsable key, event id, tag or other protocol-level input."""


# ---------------------------------------------------------------------------
# Publishing / delivery
# ---------------------------------------------------------------------------


class PublishingError(NostaroError):
    """Failed to publish an event to any relay."""


class DeliveryError(NostaroError):
    """Webhook POST failed (transport error or non-2xx response).

    See Also:
        [post_webhook()][nostaro.services.watch.webhook.post_webhook]: Raises this
            exception.
    """


# ---------------------------------------------------------------------------
# External services
# ---------------------------------------------------------------------------


class UploadError(NostaroError):
    """Blob server rejected an upload or returned an unusable response."""


class PaymentError(NostaroError):
    """LNURL resolution, invoice request, or payment command failed."""
