"""Default local collaborators: normalization, scoring, rules and redaction."""
