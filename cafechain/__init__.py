"""
                        Cafe Chain

Backend for a multi-restaurant food ordering platform: restaurant and
menu management, order tracking, wallets, OTP email verification and
sales analytics.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
