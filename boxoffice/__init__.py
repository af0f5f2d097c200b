"""Box office ticket inventory and issuance service."""
