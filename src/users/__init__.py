"""
User Account Module

Login completion, profile management and booking history for the signed-in
passenger. Every endpoint except /user/login-complete expects a session
token; login-complete expects the verification token from /auth/verify-otp.
"""

from .router import router

__all__ = ["router"]
