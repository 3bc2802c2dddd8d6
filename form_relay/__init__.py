"""reCAPTCHA Form Relay.

Verifies a reCAPTCHA v3 token, then forwards the accompanying form data to a
downstream endpoint when the score clears the configured threshold.
"""

__version__ = "1.0.0"
