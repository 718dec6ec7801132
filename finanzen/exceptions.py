"""Exceptions raised by FinanZen and its external collaborators"""


class FinanZenError(Exception):
    """Base exception for FinanZen"""

    pass


class InvalidFieldError(FinanZenError, ValueError):
    """Field name does not exist on the item type being edited"""

    pass


class NarrativeError(FinanZenError):
    """Text-generation service did not return a usable diagnosis"""

    kind = "unknown"


class BlockedResponseError(NarrativeError):
    """Prompt or response was blocked by the model's safety filters"""

    kind = "blocked"


class EmptyResponseError(NarrativeError):
    """Model answered without any text"""

    kind = "empty"


class NarrativeTransportError(NarrativeError):
    """Text-generation API was unreachable or returned an error status"""

    kind = "transport"


class AuthError(FinanZenError):
    """OAuth token exchange, profile lookup or revocation failed"""

    pass


class SheetsError(FinanZenError):
    """Spreadsheet could not be created, written or read"""

    pass
