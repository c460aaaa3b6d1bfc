"""Remote sources — remote reference parsing, HEAD lookup and archive fetching.

Provides the resolver (URL → RemoteRef, git ls-remote → commit hash) and the
fetcher (HTTP download + in-place unpack into the cache directory).
"""
