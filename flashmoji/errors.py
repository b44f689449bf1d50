"""
Exception hierarchy for Flashmoji.

Provider and publish errors are raised inside a single generation attempt
and drive the queue's retry logic. They are never raised to HTTP callers;
callers see the final message through the notification bridge.
"""


class FlashmojiError(Exception):
    """Base class for all Flashmoji errors."""
    pass


class ProviderError(FlashmojiError):
    """The image provider did not produce a usable image."""
    pass


class ProviderSubmissionError(ProviderError):
    """The provider rejected the job outright (bad credentials, malformed input)."""
    pass


class ProviderExecutionError(ProviderError):
    """The provider accepted the job but failed or returned an unusable output."""
    pass


class PublishError(FlashmojiError):
    """A finished image could not be fetched or stored durably."""
    pass


class FetchError(PublishError):
    """Downloading the provider-hosted image failed."""
    pass


class PersistenceError(FlashmojiError):
    """The entry store rejected an update. Never fatal to a job's outcome."""
    pass


class StorageConfigError(FlashmojiError):
    """The configured storage backend cannot be used."""
    pass


class JobFailedError(FlashmojiError):
    """A waited-on job reached the error state."""
    pass


class JobTimeoutError(FlashmojiError):
    """A waited-on job did not finish within the caller's timeout."""
    pass
