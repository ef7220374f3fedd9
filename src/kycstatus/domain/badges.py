"""Badge presentation for KYC statuses shown in client tables."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .status import ErrorStatus, FullyVerified, ManuallyUnverified, NotVerified

if TYPE_CHECKING:
    from .status import StatusInfo


@dataclass(frozen=True, slots=True)
class Badge:
    label: str
    icon: str
    css_class: str
    tooltip: str


LOADING_BADGE = Badge(
    label="Loading...",
    icon="sync",
    css_class="kyc-loading",
    tooltip="Loading KYC status...",
)
UNKNOWN_BADGE = Badge(
    label="Unknown",
    icon="help",
    css_class="kyc-unknown",
    tooltip="KYC status unknown",
)

_PENDING_TOOLTIP = (
    "KYC verification pending. PAN and Aadhaar documents required for full verification."
)


def describe_badge(
    status: StatusInfo | None,
    *,
    loading: bool = False,
    show_details: bool = False,
) -> Badge:
    """Return the badge for ``status``.

    ``loading`` marks a row whose status has been requested but not resolved yet;
    ``show_details`` adds document counts to the label.
    """

    if loading:
        return LOADING_BADGE
    if status is None:
        return UNKNOWN_BADGE

    match status:
        case FullyVerified(verified_count=count, last_verified_on=verified_on):
            date_text = verified_on.strftime("%b %d, %Y") if verified_on else "recently"
            return Badge(
                label=f"KYC Verified ({count} docs)" if show_details else "KYC Verified",
                icon="verified_user",
                css_class="kyc-verified",
                tooltip=(
                    "KYC verified with PAN and Aadhaar documents. "
                    f"Last verified: {date_text}"
                ),
            )
        case ManuallyUnverified(verified_count=count, total_count=total):
            return Badge(
                label=f"KYC Unverified ({count}/{total})" if show_details else "KYC Unverified",
                icon="gpp_bad",
                css_class="kyc-unverified",
                tooltip="KYC verification was manually revoked by an administrator.",
            )
        case ErrorStatus(message=message):
            return Badge(
                label="KYC Error",
                icon="error",
                css_class="kyc-error",
                tooltip=f"KYC record could not be read: {message}",
            )
        case NotVerified(error=error) if error:
            return Badge(
                label=_pending_label(status, show_details=show_details),
                icon="schedule",
                css_class="kyc-pending",
                tooltip=f"KYC status could not be loaded ({error}). {_PENDING_TOOLTIP}",
            )
        case _:
            return Badge(
                label=_pending_label(status, show_details=show_details),
                icon="schedule",
                css_class="kyc-pending",
                tooltip=_PENDING_TOOLTIP,
            )


def _pending_label(status: StatusInfo, *, show_details: bool) -> str:
    if not show_details or isinstance(status, ErrorStatus):
        return "KYC Pending"
    return f"KYC Pending ({status.verified_count}/{status.total_count})"


__all__ = ["LOADING_BADGE", "UNKNOWN_BADGE", "Badge", "describe_badge"]
