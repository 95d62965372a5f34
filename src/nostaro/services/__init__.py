"""Long-running and multi-step operations behind the CLI commands.

Services are the top library layer of the diamond DAG, depending on
[nostaro.core][nostaro.core], [nostaro.utils][nostaro.utils], and
[nostaro.models][nostaro.models]. Command handlers in
[nostaro.commands][nostaro.commands] are thin glue around them.

Attributes:
    Watcher: Subscription consumer forwarding mentions, replies, reactions
        and channel messages to a webhook.
        See [Watcher][nostaro.services.watch.Watcher].
    search: Multi-process vanity npub search.
        See [search()][nostaro.services.vanity.search].
    upload_blossom: Blossom blob upload.
        See [upload_blossom()][nostaro.services.upload.upload_blossom].
    upload_nip96: NIP-96 media upload.
        See [upload_nip96()][nostaro.services.upload.upload_nip96].
    send_zap: LNURL resolution, zap request and invoice payment.
        See [send_zap()][nostaro.services.zap.send_zap].
"""

from .upload import UploadResult, upload_blossom, upload_nip96
from .vanity import VanityResult, search
from .watch import WatchConfig, Watcher, WatchStats
from .zap import LnurlPayInfo, ZapReceipt, resolve_lnurl, send_zap


__all__ = [
    "LnurlPayInfo",
    "UploadResult",
    "VanityResult",
    "WatchConfig",
    "WatchStats",
    "Watcher",
    "ZapReceipt",
    "resolve_lnurl",
    "search",
    "send_zap",
    "upload_blossom",
    "upload_nip96",
]
