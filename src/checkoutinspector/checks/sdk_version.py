"""Version lifecycle checks."""

from __future__ import annotations

from checkoutinspector.checks.models import (
    CheckCategory,
    CheckOutcome,
    info,
    notice,
    passed,
    skip,
    warn,
)
from checkoutinspector.checks.registry import CheckRegistry
from checkoutinspector.scan.models import ScanPayload
from checkoutinspector.version.semver import VersionLag, classify_lag

registry = CheckRegistry(CheckCategory.VERSION_LIFECYCLE)

RELEASE_NOTES_URL = "https://docs.adyen.com/online-payments/release-notes/"
UPGRADE_URL = "https://docs.adyen.com/online-payments/upgrade-your-integration/"
METADATA_URL = (
    "https://docs.adyen.com/online-payments/build-your-integration/#expose-library-metadata"
)

SKIP_TITLE = "Version comparison skipped."


@registry.check("version-detected")
def version_detected(payload: ScanPayload) -> CheckOutcome:
    detected = payload.version_info.detected
    if not detected:
        return warn(
            "Could not determine the adyen-web SDK version.",
            "Without a version, freshness checks cannot run and an outdated SDK may go "
            "unnoticed.",
            "Enable exposeLibraryMetadata in your AdyenCheckout configuration, or load "
            "the SDK from a versioned CDN URL.",
            METADATA_URL,
        )
    return info(f"Detected adyen-web version: {detected}.")


@registry.check("version-latest")
def version_latest(payload: ScanPayload) -> CheckOutcome:
    detected = payload.version_info.detected
    latest = payload.version_info.latest
    if not detected:
        return skip(SKIP_TITLE, "Could not detect current SDK version.")
    if not latest:
        return skip(SKIP_TITLE, "Could not fetch latest version from the package registry.")

    lag = classify_lag(detected, latest)
    if lag is None:
        return skip(SKIP_TITLE, "Could not parse version strings.")

    if lag is VersionLag.CURRENT:
        return passed(f"Running the latest version ({detected}).")

    if lag is VersionLag.PATCH:
        return notice(
            f"Version {detected} is behind latest patch ({latest}).",
            "Consider upgrading to pick up the latest bug fixes and security patches.",
            "Update adyen-web to the latest patch version. Patch releases are "
            "backward-compatible and low-risk to apply.",
            RELEASE_NOTES_URL,
        )

    if lag is VersionLag.MINOR:
        return warn(
            f"Version {detected} is behind latest minor version ({latest}).",
            "Consider upgrading to access the latest bug fixes, improvements, and "
            "payment methods.",
            "Update adyen-web to the latest minor version within your current major. "
            "Minor releases add payment methods and performance improvements.",
            UPGRADE_URL,
        )

    return warn(
        f"Version {detected} is behind latest major version ({latest}).",
        "Consider upgrading to access the latest supported major version and "
        "improvements.",
        "Update adyen-web to the latest major version. Major releases may break "
        "compatibility, so review the migration guide and upgrade in staging first.",
        RELEASE_NOTES_URL,
    )


CHECKS = registry.checks
