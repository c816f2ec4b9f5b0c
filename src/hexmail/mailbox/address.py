# =============================================================================
# Address Validator
# =============================================================================
# Recipients must belong to the mailbox domain. The check is a literal,
# case-sensitive suffix match: "bob@hexmail.com" passes, "bob@HEXMAIL.com"
# and "bob@hexmail.com.evil" do not.
#
# The store enforces the same policy. A store-side rejection is mapped back
# to the same InvalidDomain error (see reclassify) so callers never need to
# know which side said no.
# =============================================================================

from dataclasses import dataclass

from hexmail.config import DEFAULT_DOMAIN
from hexmail.core import HexmailError, InvalidDomain, RemoteFailure
from hexmail.storage.database import DOMAIN_POLICY_MARKER


@dataclass(frozen=True)
class ValidationResult:
    """
    Outcome of validating one address.

    Attributes:
        address: The address that was checked.
        domain: The required suffix.
        ok: True if the address is acceptable.
    """
    address: str
    domain: str
    ok: bool

    @property
    def error(self) -> InvalidDomain | None:
        """The error describing the failure, or None if valid."""
        if self.ok:
            return None
        return InvalidDomain(self.address, self.domain)

    def raise_for_error(self) -> None:
        """
        Raises:
            InvalidDomain: If the address failed validation.
        """
        error = self.error
        if error is not None:
            raise error

    def __bool__(self) -> bool:
        return self.ok


class AddressValidator:
    """
    Gates recipient addresses by domain. Pure; never touches the network.

    Usage:
        >>> validator = AddressValidator("@hexmail.com")
        >>> validator.validate("bob@hexmail.com").ok
        True
        >>> validator.require("bob@example.com")
        Traceback (most recent call last):
        ...
        hexmail.core.errors.InvalidDomain: Only @hexmail.com addresses are allowed
    """

    def __init__(self, domain: str = DEFAULT_DOMAIN) -> None:
        self.domain = domain

    def validate(self, address: str) -> ValidationResult:
        """Check `address` against the domain suffix. Never raises."""
        return ValidationResult(
            address=address,
            domain=self.domain,
            ok=address.endswith(self.domain),
        )

    def require(self, address: str) -> str:
        """
        Validate and return `address`.

        Raises:
            InvalidDomain: If the address is outside the domain.
        """
        self.validate(address).raise_for_error()
        return address

    def reclassify(self, error: RemoteFailure, address: str = "") -> HexmailError:
        """
        Map a store-side domain policy rejection to InvalidDomain.

        Any other failure is returned unchanged.
        """
        if DOMAIN_POLICY_MARKER in error.detail:
            return InvalidDomain(address, self.domain)
        return error
