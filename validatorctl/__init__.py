"""validatorctl: install the validator and its plugins, then apply rules."""

__version__ = "0.1.0"
