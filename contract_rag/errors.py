from __future__ import annotations


class ContractRagError(RuntimeError):
    """Base class for failures raised by the retrieval stack."""


class ProviderError(ContractRagError):
    """A provider call returned a non-2xx status or never completed.

    ``status_code`` is ``None`` for transport failures (connection refused,
    timeout); ``body`` then holds the transport error message.
    """

    def __init__(self, provider: str, status_code: int | None, body: str):
        self.provider = provider
        self.status_code = status_code
        self.body = body
        if status_code is None:
            message = f"{provider} request failed: {body}"
        else:
            message = f"{provider} API error: {status_code} {body}"
        super().__init__(message)


class MalformedResponseError(ContractRagError):
    """A provider answered 2xx but the payload lacks the expected fields."""

    def __init__(self, provider: str, detail: str):
        self.provider = provider
        self.detail = detail
        super().__init__(f"{provider} returned a malformed response: {detail}")
