"""Query and mutation roots, one pair per downstream service."""
