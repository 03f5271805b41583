"""ConfidentialCast core: data model, errors, time, canonical JSON and signing keys."""
