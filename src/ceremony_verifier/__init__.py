"""ceremony-verifier - Authenticated verifier client for ceremony coordinators."""

__version__ = "0.1.0"
__author__ = "Ceremony Verifier Team"
__description__ = "Authenticated verifier client for ceremony coordinators"
