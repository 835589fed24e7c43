"""Domain Exceptions"""


class DomainError(Exception):
    """Base class for every rule violation raised by the domain layer"""
    pass


class InvalidStayWindowError(DomainError):
    """Check-in/check-out dates or party size are malformed"""
    pass


class InvalidChargeError(DomainError):
    """Charge line has a non-positive quantity or a negative price"""
    pass


class NotFoundError(DomainError):
    """Unknown reservation, charge line, guest or catalog item"""
    pass


class IllegalTransitionError(DomainError):
    """Requested lifecycle action is not allowed in the current status"""
    pass


class InvalidStateError(IllegalTransitionError):
    """Operation requires a status the reservation is not in"""
    pass


class ImmutableLineError(DomainError):
    """Attempt to alter a protected or frozen charge line"""
    pass


class ConcurrentModificationError(DomainError):
    """Reservation was changed by another actor, or its lock could not be taken"""
    pass


class DuplicateGuestError(DomainError):
    """A registered guest already uses this email address"""
    pass
