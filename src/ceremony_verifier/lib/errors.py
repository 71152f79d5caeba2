"""
Error taxonomy for the verifier client.

Every failure surfaced by the client derives from VerifierError. Each error
carries just enough context (path, base URL, locator, status code) to be
logged or displayed; none of them ever carries key material.
"""

from typing import Optional


class VerifierError(Exception):
    """Base exception for verifier errors"""

    retryable = False


class InvalidKey(VerifierError):
    """The view key could not be parsed from its stored representation"""

    def __init__(self, reason: str = "malformed view key"):
        self.reason = reason
        super().__init__(f"Invalid view key: {reason}")


class InvalidLocator(VerifierError):
    """A locator that cannot be embedded safely into a request path"""

    def __init__(self, locator: str, reason: str = "path traversal"):
        self.locator = locator
        self.reason = reason
        super().__init__(f"Refusing to use locator ({reason}): {locator}")


class FailedRequest(VerifierError):
    """Transport-level failure: the coordinator could not be reached"""

    retryable = True

    def __init__(self, path: str, base_url: str):
        self.path = path
        self.base_url = base_url
        super().__init__(f"Request ({path}) to {base_url} failed")


class FailedRemoteOperation(VerifierError):
    """The coordinator answered with a non-success status code"""

    operation = "operation"

    def __init__(
        self, locator: Optional[str] = None, status_code: Optional[int] = None
    ):
        self.locator = locator
        self.status_code = status_code
        message = f"Coordinator rejected {self.operation}"
        if locator is not None:
            message += f" for {locator}"
        if status_code is not None:
            message += f" (HTTP {status_code})"
        super().__init__(message)


class FailedLock(FailedRemoteOperation):
    # Lock contention is expected while other verifiers hold chunks.
    retryable = True
    operation = "the chunk lock"

    def __init__(self, status_code: Optional[int] = None):
        super().__init__(None, status_code)


class LockNotHeld(FailedLock):
    """The coordinator answered the lock request without granting the lock"""

    def __init__(self, chunk_id: str):
        self.chunk_id = chunk_id
        self.locator = None
        self.status_code = None
        VerifierError.__init__(
            self, f"Coordinator answered without locking chunk {chunk_id}"
        )


class FailedVerification(FailedRemoteOperation):
    operation = "verification"


class FailedChallengeDownload(FailedRemoteOperation):
    operation = "the challenge download"


class FailedResponseDownload(FailedRemoteOperation):
    operation = "the response download"


class FailedChallengeUpload(FailedRemoteOperation):
    operation = "the next challenge upload"


class LockResponseDecodeError(VerifierError):
    """A successful lock response whose body does not match LockResponse"""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Could not decode lock response: {detail}")


class VerificationError(VerifierError):
    """Raised by a contribution verifier that could not complete its check"""

    pass


class VerificationRejected(VerifierError):
    """The local verification of a chunk's contribution returned False"""

    def __init__(self, chunk_id: str):
        self.chunk_id = chunk_id
        super().__init__(f"Contribution for chunk {chunk_id} failed verification")
