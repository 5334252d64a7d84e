"""promptlab - run prompting techniques against a text-generation model."""

__version__ = "0.1.0"
