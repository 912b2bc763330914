"""
Semantic checks on discovery documents.

Parsing only guarantees the shape of a document; these rules make sure it
describes something we can actually launch with. Signature checks are not
done here.
"""

import re
import logging

from .discovery import Discovery
from .errors import ValidationError

logger = logging.getLogger(__name__)


# On-chain account names: up to 12 chars of a-z, 1-5 and dots
ACCOUNT_NAME_RE = re.compile(r"^[a-z1-5.]{1,12}$")


def validate_discovery(disco: Discovery) -> None:
    """
    Check a parsed discovery document.

    Raises:
        ValidationError: on the first rule the document breaks
    """
    if not disco.account_name:
        raise ValidationError("eosio_account_name is required")

    if not ACCOUNT_NAME_RE.match(disco.account_name):
        raise ValidationError(
            f"eosio_account_name {disco.account_name!r} is not a valid account name"
        )

    if disco.account_name.endswith("."):
        raise ValidationError(
            f"eosio_account_name {disco.account_name!r} cannot end with a dot"
        )

    if not disco.organization_name.strip():
        raise ValidationError("organization_name is required")

    for name in disco.launch_data.contracts:
        if not name:
            raise ValidationError("contract with an empty name")

    for i, link in enumerate(disco.launch_data.peers):
        if not link.discovery_link:
            raise ValidationError(f"peer #{i} has no discovery_link")

    logger.debug(f"Discovery for {disco.account_name!r} passed validation")
