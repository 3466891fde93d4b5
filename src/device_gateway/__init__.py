"""Device Gateway - short-lived device tokens in front of an upstream chat completion API."""

__version__ = "0.1.0"
